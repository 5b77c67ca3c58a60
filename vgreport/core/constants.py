"""
Constants
Centralised storage for exit codes, valgrind flags and renderer labels.
"""
# Process exit codes (CLI surface)
EXIT_CLEAN = 0
EXIT_DEFECTS = 1
EXIT_INCONCLUSIVE = 2
EXIT_FAILURE = 3

# Flags always passed to valgrind; --xml-file is appended by the runner
VALGRIND_BASE_ARGS = ["--leak-check=full", "--xml=yes"]

# Root element of memcheck's XML output
XML_ROOT_TAG = "valgrindoutput"
XML_ENTRY_TAG = "error"

# Width of the right-aligned status label, as in cargo's own output
LABEL_WIDTH = 12
