# ==========================================
# ERROR HANDLING: Result<T, E> Model
# ==========================================


class Result:
    """Base class for Result<T, E> (Ok or Err)."""

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def unwrap(self):
        """Get value or raise error."""
        if isinstance(self, Ok):
            return self.value
        message = getattr(self.error, "message", self.error)
        raise RuntimeError(f"Called unwrap() on Err: {message}")

    def unwrap_or(self, default):
        """Get value or return default."""
        if isinstance(self, Ok):
            return self.value
        return default


class Ok(Result):
    """Success case: Ok<T>."""

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return f"Ok({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Ok) and other.value == self.value

    __hash__ = None


class Err(Result):
    """Error case: Err<E>."""

    def __init__(self, error):
        self.error = error

    def __repr__(self):
        return f"Err({self.error!r})"

    def __str__(self):
        return str(self.error)
