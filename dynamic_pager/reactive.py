import asyncio
import contextvars
import logging
from contextvars import ContextVar
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

# NOTE: globals at the bottom of the file


# Collects the signals read and the effects created while it is active. Effects
# and computeds open one of these around each run to discover their
# dependencies.
class Scope:
    def __init__(self):
        # Lists preserve insertion order
        self.deps: list[Signal | Computed] = []
        self.effects: list[Effect] = []

    def register_effect(self, effect: "Effect"):
        if effect not in self.effects:
            self.effects.append(effect)

    def register_dep(self, value: "Signal | Computed"):
        if value not in self.deps:
            self.deps.append(value)

    def __enter__(self):
        self._token = SCOPE.set(self)
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        SCOPE.reset(self._token)
        self._token = None


class Untrack(Scope):
    """Reads and effect creations inside this scope are not tracked."""

    def register_effect(self, effect: "Effect"):
        pass

    def register_dep(self, value: "Signal | Computed"):
        pass


class Signal(Generic[T]):
    def __init__(self, value: T, name: Optional[str] = None):
        self.value = value
        self.name = name
        self.obs: list[Computed | Effect] = []
        self.last_change = -1

    def read(self) -> T:
        if scope := SCOPE.get():
            scope.register_dep(self)
        return self.value

    def __call__(self) -> T:
        return self.read()

    def write(self, value: T):
        if value == self.value:
            return
        increment_epoch()
        self.value = value
        self.last_change = epoch()
        # Observers may unsubscribe while being notified
        for obs in list(self.obs):
            obs._push_change()

    def __repr__(self) -> str:
        return f"Signal({self.value!r}, name={self.name!r})"


class Computed(Generic[T]):
    def __init__(self, fn: Callable[[], T], name: Optional[str] = None):
        self.fn = fn
        self.value: T = None  # type: ignore
        self.name = name
        self.initialized = False
        self.dirty = False
        self.on_stack = False
        self.last_change: int = -1
        self.deps: list[Signal | Computed] = []
        self.obs: list[Computed | Effect] = []

    def read(self) -> T:
        if self.on_stack:
            raise RuntimeError(f"Circular dependency detected in computed {self.name}")

        if scope := SCOPE.get():
            scope.register_dep(self)

        self._recompute_if_necessary()
        return self.value

    def __call__(self) -> T:
        return self.read()

    def _push_change(self):
        if self.dirty:
            return
        self.dirty = True
        for obs in list(self.obs):
            obs._push_change()

    def _recompute(self):
        if self.on_stack:
            raise RuntimeError(f"Circular dependency detected in computed {self.name}")
        prev_value = self.value
        prev_deps = set(self.deps)
        execution_epoch = epoch()
        self.on_stack = True
        try:
            with Scope() as scope:
                value = self.fn()
        finally:
            self.on_stack = False

        if epoch() != execution_epoch:
            raise RuntimeError(
                f"Detected write to a signal in computed {self.name}. Computeds should be read-only."
            )
        if scope.effects:
            raise RuntimeError(
                f"An effect was created within computed {self.name}. "
                "Computed values should be pure calculations."
            )

        self.value = value
        self.dirty = False
        if not self.initialized or prev_value != value:
            self.last_change = execution_epoch
        self.initialized = True

        self.deps = scope.deps
        new_deps = set(self.deps)
        for dep in new_deps - prev_deps:
            dep.obs.append(self)
        for dep in prev_deps - new_deps:
            dep.obs.remove(self)

    def _recompute_if_necessary(self):
        if not self.initialized:
            self._recompute()
            return
        if not self.dirty:
            return

        for dep in self.deps:
            if isinstance(dep, Computed):
                dep._recompute_if_necessary()
            if dep.last_change > self.last_change:
                self._recompute()
                return

        self.dirty = False


EffectCleanup = Callable[[], None]
EffectFn = Callable[[], Optional[EffectCleanup]]


class Effect:
    def __init__(
        self,
        fn: EffectFn,
        name: Optional[str] = None,
        immediate: bool = False,
        lazy: bool = False,
    ):
        if immediate and lazy:
            raise ValueError("An effect cannot be both immediate and lazy")

        self.fn: EffectFn = fn
        self.name: Optional[str] = name
        self.cleanup_fn: Optional[EffectCleanup] = None
        self.deps: list[Signal | Computed] = []
        self.children: list[Effect] = []
        self.parent: Optional[Effect] = None
        # Number of completed runs, mostly useful for tests
        self.runs: int = 0
        self.last_run: int = -1
        self.batch: Optional[Batch] = None
        self.disposed = False

        if scope := SCOPE.get():
            scope.register_effect(self)

        if immediate:
            self.run()
        elif not lazy:
            self.schedule()

    def _cleanup_before_run(self):
        for child in self.children:
            child._cleanup_before_run()
        if self.cleanup_fn:
            self.cleanup_fn()
            self.cleanup_fn = None

    def dispose(self):
        if self.disposed:
            return
        self.disposed = True
        # Children unregister themselves from self.children
        for child in self.children.copy():
            child.dispose()
        if self.cleanup_fn:
            self.cleanup_fn()
            self.cleanup_fn = None
        for dep in self.deps:
            if self in dep.obs:
                dep.obs.remove(self)
        self.deps = []
        if self.parent and self in self.parent.children:
            self.parent.children.remove(self)
        if self.batch and self in self.batch.effects:
            self.batch.effects.remove(self)
        self.batch = None

    def schedule(self):
        if self.disposed:
            return
        batch = BATCH.get()
        batch.register_effect(self)
        self.batch = batch

    def _push_change(self):
        self.schedule()

    def _should_run(self):
        return self.runs == 0 or self._deps_changed_since_last_run()

    def _deps_changed_since_last_run(self):
        for dep in self.deps:
            if dep.last_change > self.last_run:
                return True
            if isinstance(dep, Computed):
                dep._recompute_if_necessary()
                if dep.last_change > self.last_run:
                    return True
        return False

    def __call__(self):
        self.run()

    def run(self):
        if self.disposed:
            return

        with Untrack():
            self._cleanup_before_run()

        prev_deps = set(self.deps)
        execution_epoch = epoch()
        with Scope() as scope:
            # Cleared before running, a write in `fn` may reschedule this effect
            self.batch = None
            self.cleanup_fn = self.fn()
            self.runs += 1
            self.last_run = execution_epoch

        self.children = scope.effects
        for child in self.children:
            child.parent = self
        self.deps = scope.deps
        new_deps = set(self.deps)
        for dep in new_deps - prev_deps:
            dep.obs.append(self)
        for dep in prev_deps - new_deps:
            dep.obs.remove(self)

        if self._deps_changed_since_last_run():
            self.schedule()

    def __repr__(self) -> str:
        return f"<Effect {self.name or self.fn!r} runs={self.runs}>"


class Batch:
    MAX_ITERS = 10000

    def __init__(self) -> None:
        self.effects: list[Effect] = []

    def register_effect(self, effect: Effect):
        if effect not in self.effects:
            self.effects.append(effect)

    def flush(self):
        token = None
        if BATCH.get() is not self:
            token = BATCH.set(self)

        try:
            iters = 0
            while self.effects:
                if iters > self.MAX_ITERS:
                    raise RuntimeError(
                        f"The reactive system ran more than {self.MAX_ITERS} effect iterations. "
                        "There is likely an update cycle: an effect keeps writing to a signal it depends on."
                    )
                current_effects = self.effects
                self.effects = []
                for effect in current_effects:
                    if effect._should_run():
                        effect.run()
                    else:
                        effect.batch = None
                iters += 1
        finally:
            if token:
                BATCH.reset(token)

    def __enter__(self):
        self._token = BATCH.set(self)
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        try:
            if exc_type is None:
                self.flush()
        finally:
            # Reset after flushing, the batch needs to capture any effects
            # scheduled while flushing.
            BATCH.reset(self._token)


class GlobalBatch(Batch):
    """Batch that flushes itself on the running event loop.

    Signal writes made outside of an explicit `Batch` land here and are
    flushed together on the next loop iteration. Without a running loop,
    effects wait for an explicit `flush_effects()`.
    """

    def __init__(self) -> None:
        super().__init__()
        self.scheduled_on: Optional[asyncio.AbstractEventLoop] = None

    def register_effect(self, effect: Effect):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None and self.scheduled_on is not loop:
            # Flush in a fresh context so no scope or batch leaks into effects
            loop.call_soon_threadsafe(self.flush, context=contextvars.Context())
            self.scheduled_on = loop
        super().register_effect(effect)

    def flush(self):
        try:
            super().flush()
        except Exception:
            logger.exception("Error while flushing effects")
            raise
        finally:
            self.scheduled_on = None


def flush_effects():
    BATCH.get().flush()


def batch():
    return Batch()


def untrack():
    return Untrack()


def root_context() -> contextvars.Context:
    """A copy of the current context with no active scope or explicit batch.

    Work started from inside an effect or a `batch()` runs in it, so its reads
    are not tracked and its writes are flushed by the global batch.
    """
    ctx = contextvars.copy_context()
    ctx.run(_enter_root)
    return ctx


def _enter_root():
    SCOPE.set(None)
    BATCH.set(GLOBAL_BATCH)


# --- Globals ---
class Epoch:
    current: int = 0


EPOCH = ContextVar("dynamic_pager_epoch", default=Epoch())
SCOPE: ContextVar[Optional[Scope]] = ContextVar("dynamic_pager_scope", default=None)
GLOBAL_BATCH = GlobalBatch()
BATCH: ContextVar[Batch] = ContextVar("dynamic_pager_batch", default=GLOBAL_BATCH)


def epoch():
    return EPOCH.get().current


def increment_epoch():
    EPOCH.get().current += 1
