"""Allows ``python -m configurator``."""
from configurator.main import main

if __name__ == "__main__":
    main()
