import pytest

from probing.hashing import (
    CapacityExceeded,
    DoubleHashingProbing,
    HashInterface,
    HashTable,
    InvalidCapacity,
    LinearProbingHash,
    NotFound,
    QuadraticPrimaryProbingHash,
    QuadraticProbingHash,
    UnknownStrategy,
    new_table,
)

VARIANTS = [LinearProbingHash, QuadraticProbingHash, QuadraticPrimaryProbingHash, DoubleHashingProbing]


@pytest.mark.parametrize("cls", VARIANTS)
def test_get_after_put(cls):
    t = cls(191)
    assert isinstance(t, HashInterface)
    n = 60

    for i in range(n):
        # should return NotFound if not set
        assert t.get(i * 7) == NotFound()

    for i in range(n):
        t.put(i * 7, i)

    for i in range(n):
        # should return correct value
        assert t.get(i * 7) == i

    for i in range(n):
        t.put(i * 7, -i)
    for i in range(n):
        # should return the most recent value
        assert t.get(i * 7) == -i

    assert len(t) == n


@pytest.mark.parametrize("cls", VARIANTS)
def test_no_collisions_in_empty_table(cls):
    t = cls(191)
    t.put(12, 24)
    assert t.collision_count() == 0
    assert t.get(12) == 24
    assert t.collision_count() == 0


@pytest.mark.parametrize("cls", VARIANTS)
def test_overwrite_costs_no_extra_collisions(cls):
    t = cls(191)
    t.put(5, 1)
    t.put(196, 2)
    before = t.collision_count()
    t.put(196, 1)
    first = t.collision_count() - before

    before = t.collision_count()
    t.put(196, 3)
    assert t.collision_count() - before == first
    assert t.get(196) == 3
    assert len(t) == 2


def test_linear_worked_example():
    t = LinearProbingHash(191)
    t.put(5, 10)
    t.put(196, 392)
    assert t.collision_count() == 1
    assert t.table[5].key == 5
    assert t.table[6].key == 196
    assert t.get(196) == 392
    assert t.collision_count() == 2


def test_linear_collision_accounting():
    t = LinearProbingHash(11)
    for k in (3, 14, 25):
        t.put(k, k)
    # 14 steps over 3, 25 steps over 3 and 14
    assert t.collision_count() == 3
    assert [t.table[i].key for i in (3, 4, 5)] == [3, 14, 25]

    # 36 also starts at 3 and finds slot 6 after three occupied slots
    before = t.collision_count()
    t.put(36, 36)
    assert t.collision_count() - before == 3


def test_linear_ascending_fill_has_no_collisions():
    t = LinearProbingHash(191)
    for k in range(191):
        t.put(k, k * 2)
    assert t.collision_count() == 0
    assert len(t) == 191


def test_quadratic_worked_example():
    t = QuadraticProbingHash(191)
    t.put(0, 0)
    assert t.table[181].key == 0

    # 181 has the same secondary hash as 0
    t.put(181, 362)
    assert t.collision_count() == 1
    assert t.table[182].key == 181


def test_double_hashing_step():
    t = DoubleHashingProbing(191)
    t.put(5, 10)
    t.put(196, 392)
    # 196 starts at 5 and steps by 181 - 196 % 181 = 166
    assert t.table[(5 + 166) % 191].key == 196
    assert t.collision_count() == 1


@pytest.mark.parametrize("cls", [LinearProbingHash, DoubleHashingProbing])
def test_full_table_raises(cls):
    t = cls(191)
    for k in range(0, 191 * 3, 3):
        t.put(k, k)
    assert len(t) == 191

    before = t.collision_count()
    with pytest.raises(CapacityExceeded) as e:
        t.put(10_000, 1)
    assert e.value.key == 10_000
    # failed put leaves table unchanged
    assert t.collision_count() == before
    assert len(t) == 191
    assert all(slot.key != 10_000 for slot in t.flatten())

    # existing keys can still be overwritten
    t.put(3, 99)
    assert t.get(3) == 99

    # lookups of absent keys terminate
    assert t.get(10_000) == NotFound()


def test_quadratic_full_table_never_hangs():
    t = QuadraticProbingHash(191)
    with pytest.raises(CapacityExceeded):
        for k in range(192):
            t.put(k, k)
    assert len(t) <= 191


def test_tiny_tables():
    t = LinearProbingHash(1)
    t.put(7, 14)
    assert t.get(7) == 14
    with pytest.raises(CapacityExceeded):
        t.put(8, 16)
    assert t.get(8) == NotFound()

    # secondary hash exceeds size
    t = QuadraticProbingHash(3)
    t.put(0, 0)
    assert t.get(0) == 0


def test_dump_is_in_index_order():
    t = LinearProbingHash(11)
    for k in (9, 2, 13, 5):
        t.put(k, k * 2)
    assert t.dump() == (
        "*** Linear probing Start ***\n"
        "\n"
        "print table.size()=11\n"
        "index=2 key=2 value=4\n"
        "index=3 key=13 value=26\n"
        "index=5 key=5 value=10\n"
        "index=9 key=9 value=18\n"
        "\n"
        "Linear probing 1 collisions\n"
        "\n"
        "*** Linear probing End ***\n"
        "\n"
    )


def test_as_list_and_flatten():
    t = QuadraticPrimaryProbingHash(5)
    t.put(1, "a")
    t.put(6, "b")
    view = t.as_list()
    assert view[1] == {"index": 1, "key": 1, "value": "a"}
    assert view[2] == {"index": 2, "key": 6, "value": "b"}
    assert view[0] is None
    assert [r.key for r in t.flatten()] == [1, 6]


def test_string_keys():
    t = DoubleHashingProbing(191)
    for word in ("alpha", "beta", "gamma", "delta"):
        t.put(word, len(word))
    assert t.get("gamma") == 5
    assert t.get("epsilon") == NotFound()


def test_instances_do_not_share_counters():
    a = LinearProbingHash(191)
    b = LinearProbingHash(191)
    a.put(5, 1)
    a.put(196, 2)
    assert a.collision_count() == 1
    assert b.collision_count() == 0


@pytest.mark.parametrize("size", [0, -1, 2.5, True, "191"])
def test_invalid_capacity(size):
    with pytest.raises(InvalidCapacity):
        LinearProbingHash(size)
    with pytest.raises(ValueError):
        HashTable(size, new_table("linear", 1).strategy)


def test_new_table():
    t = new_table("Double", 13)
    assert isinstance(t, HashTable)
    assert t.strategy.name == "double"
    assert t.size == 13
    with pytest.raises(UnknownStrategy):
        new_table("cuckoo", 13)


def test_quadratic_composite_size_reaches_later_slots():
    t = QuadraticPrimaryProbingHash(24)
    for k in (0, 24, 48, 72, 96):
        t.put(k, k)
    assert [t.table[i].key for i in (0, 1, 4, 9, 16)] == [0, 24, 48, 72, 96]
    assert t.collision_count() == 1 + 2 + 3 + 4

    # 0, 1, 4, 9, 16 are taken, 1 comes round again, then 12 is free
    t.put(120, 240)
    assert t.table[12].key == 120
    assert t.collision_count() == 10 + 5
    assert t.get(120) == 240
    assert t.collision_count() == 20

    # every index the sequence can reach is now taken
    with pytest.raises(CapacityExceeded):
        t.put(144, 288)
    assert len(t) == 6
    assert t.collision_count() == 20
