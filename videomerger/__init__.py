"""
videomerger - Concatenate recorded FLV segments with an external tool

This package provides the merge workflow that:
- Discovers segment files in a folder and orders them by capture time
- Lets the user reorder, add and remove segments before merging
- Runs the external concatenation tool (yamdi) as a supervised process
- Supports cancellation of a running merge
- Moves merged sources into a size-bounded retention folder
- Clears the retention folder once it grows past a threshold

Only one merge runs at a time; the tool's exit code is the whole protocol.
"""

__version__ = "0.1.0"
