"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    VALGRIND_BIN         — valgrind executable (default: valgrind)
    VALGRIND_EXTRA_ARGS  — extra flags, whitespace separated (e.g. "--show-leak-kinds=all")
    VALGRIND_TIMEOUT     — seconds before the analysed program is killed (default: 600)
    CARGO_BIN            — cargo executable (default: cargo)
    FINGERPRINT_DEPTH    — frames contributing to the grouping fingerprint (default: 8)
    LOG_DIR              — directory for the dated log file (default: unset, console only)

Fingerprint Depth:
    FINGERPRINT_DEPTH controls how many of the innermost emitted frames decide
    whether two findings are duplicates. Smaller values merge more aggressively
    (findings reached through different callers collapse into one group).
"""
import os
from dotenv import load_dotenv

load_dotenv()

VALGRIND_BIN = os.getenv("VALGRIND_BIN", "valgrind")
VALGRIND_EXTRA_ARGS: list[str] = os.getenv("VALGRIND_EXTRA_ARGS", "").split()
VALGRIND_TIMEOUT = int(os.getenv("VALGRIND_TIMEOUT", 600))

CARGO_BIN = os.getenv("CARGO_BIN", "cargo")

FINGERPRINT_DEPTH = int(os.getenv("FINGERPRINT_DEPTH", 8))

LOG_DIR = os.getenv("LOG_DIR", "")
