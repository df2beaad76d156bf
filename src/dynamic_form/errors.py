# errors.py
# Exception hierarchy for dynamic_form.
#
# User input problems are never raised; they land in Changes.errors.
# Everything here signals a broken description, an untrusted payload that
# must not be decoded, or a backend that cannot be invoked.


class FormConfigError(Exception):
    """Raised when a form description is internally inconsistent."""


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class DecodeError(Exception):
    """Raised when an external representation cannot be turned into a tree."""


class MissingKeyError(DecodeError):
    """Raised when a required key is absent from a serialized node."""

    def __init__(self, key: str, where: str) -> None:
        self.key = key
        self.where = where
        super().__init__(f"Missing required key '{key}' in {where}.")


class UnknownSymbolError(DecodeError):
    """
    Raised when a serialized reference names an identifier the registry
    does not know. Always fatal: nothing is guessed or imported.
    """

    def __init__(self, symbol: object, kind: str = "identifier") -> None:
        self.symbol = symbol
        self.kind = kind
        super().__init__(
            f"Unknown {kind} {symbol!r}: not registered. "
            "Register it before decoding."
        )


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class BackendConfigError(Exception):
    """Raised when a form's backend cannot be invoked as configured."""
