# Separate file from reactive.py due to needing to import from state too

import inspect
from typing import Callable, Optional, TypeVar, overload

from dynamic_pager.reactive import Computed, Effect, EffectCleanup, EffectFn
from dynamic_pager.state import ComputedProperty, State, StateEffect

T = TypeVar("T")
TState = TypeVar("TState", bound=State)


def _is_method(fn: Callable, decorator: str) -> bool:
    params = list(inspect.signature(fn).parameters.values())
    if len(params) == 1 and params[0].name == "self":
        return True
    if len(params) > 0:
        raise TypeError(
            f"@{decorator}: Function '{fn.__name__}' must take no arguments or a single 'self' argument"
        )
    return False


# @computed turns a function without arguments into a Computed, and a State
# method into a ComputedProperty bound per instance.
@overload
def computed(fn: Callable[[], T], *, name: Optional[str] = None) -> Computed[T]: ...
@overload
def computed(
    fn: Callable[[TState], T], *, name: Optional[str] = None
) -> ComputedProperty[T]: ...
@overload
def computed(
    fn: None = None, *, name: Optional[str] = None
) -> Callable[[Callable[[], T]], Computed[T]]: ...


def computed(fn: Optional[Callable] = None, *, name: Optional[str] = None):
    def decorator(fn: Callable, /):
        if _is_method(fn, "computed"):
            return ComputedProperty(fn.__name__, fn)
        return Computed(fn, name=name or fn.__name__)

    if fn is not None:
        return decorator(fn)
    return decorator


@overload
def effect(
    fn: EffectFn, *, name: Optional[str] = None, immediate: bool = False, lazy=False
) -> Effect: ...
@overload
def effect(
    fn: Callable[[TState], None] | Callable[[TState], EffectCleanup],
) -> StateEffect: ...
@overload
def effect(
    fn: None = None, *, name: Optional[str] = None, immediate: bool = False, lazy=False
) -> Callable[[EffectFn], Effect]: ...


def effect(
    fn: Optional[Callable] = None,
    *,
    name: Optional[str] = None,
    immediate: bool = False,
    lazy=False,
):
    def decorator(func: Callable, /):
        if _is_method(func, "effect"):
            return StateEffect(func, immediate=immediate)
        return Effect(func, name=name or func.__name__, immediate=immediate, lazy=lazy)

    if fn is not None:
        return decorator(fn)
    return decorator
