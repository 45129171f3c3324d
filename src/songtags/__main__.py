"""
Main entry point for running songtags as a module.
Allows: python -m songtags ...
"""
import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
