"""
python -m general_repository <get|post|put|patch|delete|upload> ...
"""

from .repository import main

if __name__ == "__main__":
    main()
