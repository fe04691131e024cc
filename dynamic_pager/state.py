"""
Reactive state objects.

A `State` subclass turns its public annotated attributes into signals, its
`@computed` methods into lazily evaluated computeds and its `@effect` methods
into effects that live as long as the instance.
"""

import inspect
from abc import ABC, ABCMeta
from typing import Any, Callable, Generic, TypeVar

from dynamic_pager.reactive import Computed, Effect, Signal, untrack

T = TypeVar("T")


class StateProperty:
    """
    Descriptor backing a reactive attribute with one `Signal` per instance.
    Reading tracks the signal, assigning writes to it.
    """

    def __init__(self, name: str, default_value: Any = None):
        self.name = name
        self.default_value = default_value
        self.private_name = f"__signal_{name}"

    def get_signal(self, obj) -> Signal:
        signal = obj.__dict__.get(self.private_name)
        if signal is None:
            signal = Signal(
                self.default_value, name=f"{obj.__class__.__name__}.{self.name}"
            )
            obj.__dict__[self.private_name] = signal
        return signal

    def __get__(self, obj: Any, objtype: Any = None) -> Any:
        if obj is None:
            return self
        return self.get_signal(obj).read()

    def __set__(self, obj: Any, value: Any) -> None:
        self.get_signal(obj).write(value)


class ComputedProperty(Generic[T]):
    """
    Descriptor for computed properties on State classes.
    """

    def __init__(self, name: str, fn: "Callable[[State], T]"):
        self.name = name
        self.private_name = f"__computed_{name}"
        self.fn = fn

    def get_computed(self, obj) -> Computed[T]:
        if not isinstance(obj, State):
            raise ValueError(
                f"Computed property {self.name} defined on a non-State class"
            )
        computed = obj.__dict__.get(self.private_name)
        if computed is None:
            bound_method = self.fn.__get__(obj, obj.__class__)
            computed = Computed(
                bound_method, name=f"{obj.__class__.__name__}.{self.name}"
            )
            obj.__dict__[self.private_name] = computed
        return computed

    def __get__(self, obj: Any, objtype: Any = None) -> T:
        if obj is None:
            return self  # type: ignore
        return self.get_computed(obj).read()

    def __set__(self, obj: Any, value: Any):
        raise AttributeError(f"Cannot set computed property '{self.name}'")


class StateEffect:
    def __init__(self, fn: "Callable[[State], Any]", immediate: bool = False):
        self.fn = fn
        self.immediate = immediate


class StateMeta(ABCMeta):
    """
    Metaclass that turns public annotated attributes into reactive properties.
    Names starting with an underscore stay plain attributes.
    """

    def __new__(mcs, name: str, bases: tuple, namespace: dict, **kwargs):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        for attr_name in inspect.get_annotations(cls):
            if attr_name.startswith("_"):
                continue
            default_value = namespace.get(attr_name)
            setattr(cls, attr_name, StateProperty(attr_name, default_value))
        return cls

    def __call__(cls, *args, **kwargs):
        instance = super().__call__(*args, **kwargs)
        # Effects start after __init__, so they observe a fully built instance
        instance._initialize_state_effects()
        return instance


class State(ABC, metaclass=StateMeta):
    """
    Base class for reactive state objects.

    ```python
    class Counter(State):
        count: int = 0

        @computed
        def double(self):
            return self.count * 2

        @effect
        def log_count(self):
            print(f"Count is now: {self.count}")
    ```
    """

    def _initialize_state_effects(self):
        if self.__dict__.get("__state_effects_initialized__"):
            return
        self.__dict__["__state_effects_initialized__"] = True

        # Effects created here belong to the instance, not to whatever effect
        # happens to be running when the instance is constructed.
        with untrack():
            for cls in self.__class__.__mro__:
                if cls is State or cls is ABC:
                    continue
                for name, attr in cls.__dict__.items():
                    # Shadowed in a subclass
                    if getattr(self.__class__, name, attr) is not attr:
                        continue
                    if isinstance(attr, StateEffect):
                        bound_method = attr.fn.__get__(self, self.__class__)
                        effect = Effect(
                            bound_method,
                            name=f"{self.__class__.__name__}.{name}",
                            immediate=attr.immediate,
                        )
                        setattr(self, name, effect)

    def properties(self):
        """Iterate over the state's `Signal` instances, including base classes."""
        seen: set[str] = set()
        for cls in self.__class__.__mro__:
            if cls in (State, ABC):
                continue
            for name, prop in cls.__dict__.items():
                if name in seen:
                    continue
                if isinstance(prop, StateProperty):
                    seen.add(name)
                    yield prop.get_signal(self)

    def effects(self):
        """Iterate over the state's `Effect` instances."""
        for value in self.__dict__.values():
            if isinstance(value, Effect):
                yield value

    def dispose(self):
        for effect in list(self.effects()):
            effect.dispose()

    def __repr__(self) -> str:
        props: list[str] = []
        seen: set[str] = set()
        for cls in self.__class__.__mro__:
            if cls in (State, ABC):
                continue
            for name, value in cls.__dict__.items():
                if name in seen or not isinstance(value, StateProperty):
                    continue
                seen.add(name)
                props.append(f"{name}={value.get_signal(self).value!r}")
        return f"<{self.__class__.__name__} {' '.join(props)}>"
