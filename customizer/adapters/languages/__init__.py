"""Language adapters — python."""

from customizer.adapters.languages.python import PythonAdapter

__all__ = ["PythonAdapter"]
