"""Allow ``python -m tmsession``."""

from .cli.main import main

if __name__ == "__main__":
    main()
