from typing import Any, Callable, Dict, List, Type, TypeVar

R = TypeVar("R", bound=type)


class Registry:
    """
    Maps CLI-facing names to the classes that implement them.

    Reports register themselves at import time with `@report_registry.register("name")`,
    and the CLI builds them by name with per-command options.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._classes: Dict[str, type] = {}

    def register(self, name: str) -> Callable[[R], R]:
        def decorator(cls: R) -> R:
            if name in self._classes:
                raise ValueError(f"{self.kind} '{name}' is already registered by {self._classes[name].__name__}.")
            self._classes[name] = cls
            return cls
        return decorator

    def get(self, name: str) -> Type[Any]:
        try:
            return self._classes[name]
        except KeyError:
            known = ", ".join(self.names()) or "none"
            raise KeyError(f"Unknown {self.kind} '{name}' (known: {known}).") from None

    def create(self, name: str, *args: Any, **options: Any) -> Any:
        """Instantiates the class registered as `name`."""
        return self.get(name)(*args, **options)

    def names(self) -> List[str]:
        return sorted(self._classes)

    def __contains__(self, name: str) -> bool:
        return name in self._classes


report_registry = Registry("report")
