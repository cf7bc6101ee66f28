"""Allow `python -m todo_agent`."""

from todo_agent.cli import main

if __name__ == "__main__":
    main()
