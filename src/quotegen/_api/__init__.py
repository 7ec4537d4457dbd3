"""Remote endpoint modules.

These turn transport-level JSON into models. They are internal to quotegen.
"""
