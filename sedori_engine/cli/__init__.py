"""CLI 모듈"""
from .commands import create_parser, run_cli, main

__all__ = ["create_parser", "run_cli", "main"]
