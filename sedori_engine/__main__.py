"""python -m sedori_engine"""
from .cli.commands import main

if __name__ == "__main__":
    main()
