"""Store-level exceptions"""
from typing import Dict


class StoreError(Exception):
    """Unexpected failure while talking to the backing store"""


class StoreValidationError(StoreError):
    """
    A document failed field validation.

    ``field_errors`` maps every offending field name to its message, in the
    order the validator reported them.
    """

    def __init__(self, collection: str, field_errors: Dict[str, str]):
        self.collection = collection
        self.field_errors = dict(field_errors)
        details = "; ".join(f"{name}: {msg}" for name, msg in self.field_errors.items())
        super().__init__(f"{collection} validation failed: {details}")

    @property
    def fields(self):
        return list(self.field_errors)

    @property
    def messages(self):
        return [f"{name}: {msg}" for name, msg in self.field_errors.items()]
