from cellfib.fib import KnownKinds, PreloadRegistry
from tests.factories import disguise_as, make_kinds


def test_entries_kept_in_registration_order_and_not_consumed():
    kinds = make_kinds("ore", "glass", "stone")
    ore, glass, stone = (kinds.require(k) for k in ("ore", "glass", "stone"))
    known = KnownKinds()
    preloads = PreloadRegistry(known)
    fib_a, fib_b = disguise_as(stone), disguise_as(stone)

    preloads.add("overworld", ore, fib_a)
    preloads.add("overworld", glass, fib_b)

    assert preloads.entries_for("overworld") == [(ore, fib_a), (glass, fib_b)]
    # reading twice yields the same entries again
    assert preloads.entries_for("overworld") == [(ore, fib_a), (glass, fib_b)]
    assert preloads.entries_for("nether") == []
    assert ore in known and glass in known
    assert stone not in known


def test_classes_listed():
    ore = make_kinds("ore").require("ore")
    preloads = PreloadRegistry(KnownKinds())
    preloads.add("nether", ore, disguise_as(ore))
    assert preloads.classes() == ["nether"]
