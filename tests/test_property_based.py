# tests/test_property_based.py

"""
Property-based tests for the PCI calculator.

Covers:
  - PCI non-negativity
  - AAS zero-division safety
  - order independence of aggregate_cost
  - verified units recovering ai_verified_units
"""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from pci_engine.pci_model import (
    DivisorPolicy,
    aggregate_cost,
    compute_aas,
    compute_pci,
    compute_verified_units,
)
from pci_engine.schema import FACTOR_NAMES, Task

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

factor_st = st.floats(min_value=-100.0, max_value=100.0, allow_nan=False, allow_infinity=False)
units_st = st.floats(min_value=0.0, max_value=1000.0, allow_nan=False, allow_infinity=False)
policy_st = st.sampled_from(list(DivisorPolicy))


@st.composite
def task_st(draw):
    """Draw a Task with every factor in [-100, 100]."""
    factors = {name: draw(factor_st) for name in FACTOR_NAMES}
    return Task(ai_verified_units=draw(units_st), **factors)


@st.composite
def zero_pci_task_st(draw):
    """Task whose raw formula output is <= 0."""
    return Task(
        RCF=draw(st.floats(min_value=0.0, max_value=10.0)),
        AEP=draw(st.floats(min_value=0.0, max_value=10.0)),
        L=draw(st.floats(min_value=100.0, max_value=1000.0)),
        ai_verified_units=draw(units_st),
    )


@settings(max_examples=500)
@given(task=task_st())
def test_pci_is_never_negative(task):
    assert compute_pci(task) >= 0.0


@settings(max_examples=300)
@given(task=zero_pci_task_st(), policy=policy_st)
def test_aas_is_zero_whenever_pci_is_zero(task, policy):
    assert compute_pci(task) == 0.0
    assert compute_aas(task, policy) == 0.0
    assert compute_verified_units(task, policy) == 0.0


@settings(max_examples=200)
@given(
    tasks=st.lists(task_st(), min_size=0, max_size=12),
    rate=st.floats(min_value=0.0, max_value=500.0, allow_nan=False, allow_infinity=False),
    policy=policy_st,
    data=st.data(),
)
def test_aggregate_cost_is_order_independent(tasks, rate, policy, data):
    shuffled = data.draw(st.permutations(tasks))
    assert aggregate_cost(shuffled, rate, policy) == pytest.approx(
        aggregate_cost(tasks, rate, policy), rel=1e-9, abs=1e-6
    )


@settings(max_examples=300)
@given(task=task_st())
def test_verified_units_recover_ai_units_when_pci_positive(task):
    assume(compute_pci(task) > 1e-6)
    assert compute_verified_units(task) == pytest.approx(task.ai_verified_units, rel=1e-9, abs=1e-9)
