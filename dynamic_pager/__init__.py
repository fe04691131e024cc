from dynamic_pager.reactive import (
    Batch,
    Computed,
    Effect,
    Signal,
    Untrack,
    batch,
    flush_effects,
    untrack,
)
from dynamic_pager.state import State
from dynamic_pager.decorators import computed, effect
from dynamic_pager.scheduling import TaskRegistry, create_task, wait_for
from dynamic_pager.paging import next_page_index, previous_page_index
from dynamic_pager.controller import PagerConfig, PagerController
from dynamic_pager.binder import PagerBinder, PagerWidget
from dynamic_pager.commands import PagerCommands, create_pager_commands
from dynamic_pager.simulator import SimulatedPager

__all__ = [
    "Batch",
    "Computed",
    "Effect",
    "PagerBinder",
    "PagerCommands",
    "PagerConfig",
    "PagerController",
    "PagerWidget",
    "Signal",
    "SimulatedPager",
    "State",
    "TaskRegistry",
    "Untrack",
    "batch",
    "computed",
    "create_pager_commands",
    "create_task",
    "effect",
    "flush_effects",
    "next_page_index",
    "previous_page_index",
    "untrack",
    "wait_for",
]
