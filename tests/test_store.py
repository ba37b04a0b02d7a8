# tests/test_store.py
"""
Tests for divzero.store: abstract stores, merge and the store lattice.
"""

import pytest

from divzero.lattice import Sign
from divzero.store import AbstractStore, StoreLattice, merge


class TestAbstractStore:
    """Lookup, binding and copying."""

    def test_absent_reads_top(self):
        assert AbstractStore().lookup("x") is Sign.TOP

    def test_bind_and_lookup(self):
        store = AbstractStore()
        assert store.bind("x", Sign.POS) is store
        assert store.lookup("x") is Sign.POS
        assert "x" in store
        assert len(store) == 1

    def test_binding_top_drops_entry(self):
        store = AbstractStore({"x": Sign.NEG})
        store.bind("x", Sign.TOP)
        assert "x" not in store
        assert store == AbstractStore()

    def test_constructor_drops_top(self):
        assert AbstractStore({"x": Sign.TOP, "y": Sign.ZERO}) == AbstractStore({"y": Sign.ZERO})

    def test_binding_bottom_makes_unreachable(self):
        store = AbstractStore({"x": Sign.POS})
        store.bind("y", Sign.BOTTOM)
        assert not store.is_reachable
        assert store.lookup("x") is Sign.BOTTOM
        assert store == AbstractStore.unreachable()

    def test_unreachable_ignores_binds(self):
        store = AbstractStore.unreachable()
        store.bind("x", Sign.POS)
        assert not store.is_reachable
        assert len(store) == 0

    def test_forget(self):
        store = AbstractStore({"x": Sign.ZERO})
        store.forget("x")
        store.forget("missing")
        assert store.lookup("x") is Sign.TOP

    def test_copy_is_independent(self):
        store = AbstractStore({"x": Sign.ZERO})
        clone = store.copy()
        clone.bind("x", Sign.POS)
        assert store.lookup("x") is Sign.ZERO
        assert clone.lookup("x") is Sign.POS

    def test_items_and_keys(self):
        store = AbstractStore({"a": Sign.NEG, "b": Sign.POS})
        assert dict(store.items()) == {"a": Sign.NEG, "b": Sign.POS}
        assert set(store.keys()) == {"a", "b"}

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(AbstractStore())

    def test_repr(self):
        assert repr(AbstractStore.unreachable()) == "AbstractStore(⊥)"
        assert "'x': +" in repr(AbstractStore({"x": Sign.POS}))


class TestJoinAndOrder:
    """Pointwise join and ⊑."""

    def test_pointwise_join(self):
        a = AbstractStore({"x": Sign.NEG, "y": Sign.ZERO})
        b = AbstractStore({"x": Sign.POS, "y": Sign.ZERO})
        j = a.join(b)
        assert j.lookup("x") is Sign.NONZERO
        assert j.lookup("y") is Sign.ZERO

    def test_one_sided_entry_becomes_top(self):
        a = AbstractStore({"x": Sign.NEG})
        b = AbstractStore()
        assert "x" not in a.join(b)

    def test_unreachable_is_identity(self):
        a = AbstractStore({"x": Sign.NEG})
        assert a.join(AbstractStore.unreachable()) == a
        assert AbstractStore.unreachable().join(a) == a

    def test_leq(self):
        low = AbstractStore({"x": Sign.POS})
        high = AbstractStore({"x": Sign.NONZERO})
        assert low.leq(high)
        assert not high.leq(low)
        assert low.leq(AbstractStore())
        assert AbstractStore.unreachable().leq(low)
        assert not low.leq(AbstractStore.unreachable())

    def test_join_is_upper_bound(self):
        a = AbstractStore({"x": Sign.POS, "y": Sign.NEG})
        b = AbstractStore({"x": Sign.ZERO})
        j = a.join(b)
        assert a.leq(j) and b.leq(j)


class TestMerge:
    """Control-flow merge."""

    def test_empty_merge_is_unreachable(self):
        assert not merge([]).is_reachable

    def test_merge_joins_all(self):
        stores = [
            AbstractStore({"x": Sign.NEG}),
            AbstractStore({"x": Sign.POS}),
            AbstractStore.unreachable(),
        ]
        assert merge(stores).lookup("x") is Sign.NONZERO

    def test_merge_zero_and_nonzero(self):
        stores = [AbstractStore({"d": Sign.ZERO}), AbstractStore({"d": Sign.NONZERO})]
        assert merge(stores).lookup("d") is Sign.TOP

    def test_merge_does_not_alias(self):
        only = AbstractStore({"x": Sign.POS})
        merged = merge([only])
        merged.bind("x", Sign.NEG)
        assert only.lookup("x") is Sign.POS


class TestStoreLattice:
    """Adapter used by the fixpoint engine."""

    def test_bounds(self):
        lat = StoreLattice()
        assert lat.is_bottom(AbstractStore.unreachable())
        assert lat.is_top(AbstractStore())
        assert not lat.is_bottom(AbstractStore())

    def test_copy_value(self):
        lat = StoreLattice()
        store = AbstractStore({"x": Sign.POS})
        clone = lat.copy_value(store)
        assert clone == store and clone is not store

    def test_join_all(self):
        lat = StoreLattice()
        j = lat.join_all([AbstractStore({"x": Sign.ZERO}), AbstractStore({"x": Sign.ZERO})])
        assert j.lookup("x") is Sign.ZERO
