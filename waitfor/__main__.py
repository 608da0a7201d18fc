"""Allow running wait-for with `python -m waitfor`."""
from waitfor.cli import main

if __name__ == "__main__":
    main()
