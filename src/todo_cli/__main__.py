"""Run the todo CLI: python -m todo_cli <command> [options]"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
