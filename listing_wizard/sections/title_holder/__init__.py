"""Title holder section - ownership history and owners on the title.

Owner names, phone numbers and emails use the account validators.
"""

__all__ = []
