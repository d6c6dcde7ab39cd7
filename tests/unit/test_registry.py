"""Unit tests for the entity registry."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from address_graph.errors import MalformedResponseError
from address_graph.registry import EntityRegistry


class TestIdentity:
    """One instance per id and session."""

    def test_same_address_instance(self):
        """Test repeated address lookups return the identical object."""
        registry = EntityRegistry()

        first = registry.get_or_create_address("1BoatSLRHtKNngkdXEeobR76b53LETtpyT")
        second = registry.get_or_create_address("1BoatSLRHtKNngkdXEeobR76b53LETtpyT")

        assert first is second
        assert first.id == "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"
        assert registry.address_count == 1

    def test_same_transaction_instance(self):
        """Test repeated transaction lookups return the identical, empty object."""
        registry = EntityRegistry()

        first = registry.get_or_create_transaction("aa" * 32)
        second = registry.get_or_create_transaction("aa" * 32)

        assert first is second
        assert first.inputs == ()
        assert first.outputs == ()
        assert not first.is_complete

    def test_distinct_ids(self):
        """Test different ids give different objects."""
        registry = EntityRegistry()

        assert registry.get_or_create_address("a") is not registry.get_or_create_address("b")
        assert registry.transaction_count == 0

    def test_sessions_are_isolated(self):
        """Test two registries never share entities."""
        one, two = EntityRegistry(), EntityRegistry()

        assert one.get_or_create_address("a") is not two.get_or_create_address("a")
        assert one.get_or_create_transaction("t") is not two.get_or_create_transaction("t")

    def test_concurrent_get_or_create(self):
        """Test concurrent lookups of one id agree on a single instance."""
        registry = EntityRegistry()

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(registry.get_or_create_transaction, ["same"] * 200))

        assert len({id(tx) for tx in results}) == 1
        assert registry.transaction_count == 1


class TestLifecycle:
    """Discarding, attaching and sealing."""

    def test_discard_transaction(self):
        """Test a discarded transaction is replaced by a fresh instance."""
        registry = EntityRegistry()
        old = registry.get_or_create_transaction("t")

        assert registry.discard_transaction("t") is old
        assert not registry.has_transaction("t")
        assert registry.find_transaction("t") is None
        assert registry.get_or_create_transaction("t") is not old

    def test_discard_unknown(self):
        """Test discarding an unknown id is a no-op."""
        assert EntityRegistry().discard_transaction("missing") is None

    def test_new_input_and_output(self):
        """Test factories link entries in both directions."""
        registry = EntityRegistry()
        tx = registry.get_or_create_transaction("t")
        addr = registry.get_or_create_address("a")

        inp = registry.new_input(tx, addr, "prev", 1_000, 2)
        out = registry.new_output(tx, addr, 900, 0)

        assert tx.inputs == (inp,)
        assert tx.outputs == (out,)
        assert inp.transaction is tx
        assert inp.previous_transaction_id == "prev"
        assert inp.previous_output_index == 2
        assert out.transaction is tx
        assert out.index == 0
        assert tx.input_value == 1_000
        assert tx.output_value == 900

    def test_sealed_transaction_rejects_entries(self):
        """Test nothing can be attached once assembly is finished."""
        registry = EntityRegistry()
        tx = registry.get_or_create_transaction("t")
        registry.seal(tx)

        with pytest.raises(MalformedResponseError):
            registry.new_output(tx, registry.get_or_create_address("a"), 1)

    def test_foreign_transaction_rejected(self):
        """Test entries cannot be attached to a transaction of another session."""
        registry = EntityRegistry()
        foreign = EntityRegistry().get_or_create_transaction("t")

        with pytest.raises(MalformedResponseError):
            registry.new_output(foreign, registry.get_or_create_address("a"), 1)

    def test_views_are_read_only(self):
        """Test inputs and outputs are exposed as tuples."""
        registry = EntityRegistry()
        tx = registry.get_or_create_transaction("t")
        registry.new_output(tx, registry.get_or_create_address("a"), 1)

        assert isinstance(tx.outputs, tuple)
        with pytest.raises(AttributeError):
            tx.outputs.append(None)  # type: ignore[attr-defined]

    def test_same_entry_key_rejected(self):
        """Test one output index cannot be attached twice."""
        registry = EntityRegistry()
        tx = registry.get_or_create_transaction("t")
        addr = registry.get_or_create_address("a")
        registry.new_output(tx, addr, 1, 0)

        with pytest.raises(MalformedResponseError):
            registry.new_output(tx, addr, 1, 0)

        assert len(tx.outputs) == 1
