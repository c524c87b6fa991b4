"""Tests for the pool.py file."""

# pylint: disable=C0116:missing-function-docstring

import pytest

from pyChainMaker.pool import CertPool


def test_add_keeps_insertion_order(root, intermediate, leaf):
    pool = CertPool()
    for cert in (leaf, root, intermediate):
        pool.add(cert)

    assert pool.certificates == [leaf, root, intermediate]
    assert list(pool) == [leaf, root, intermediate]
    assert len(pool) == 3


def test_duplicate_add_is_noop(root):
    pool = CertPool()
    pool.add(root)
    pool.add(root)

    assert len(pool) == 1
    assert pool.by_subject[root.subject] == [0]


def test_same_subject_different_encoding_are_both_kept(make_cert):
    c1 = make_cert("Shared CA")
    c2 = make_cert("Shared CA")
    assert c1.raw != c2.raw

    pool = CertPool()
    pool.add(c1)
    pool.add(c2)

    assert len(pool) == 2
    assert pool.find_by_subject(c1.subject) == [c1, c2]


def test_contains(root, intermediate):
    pool = CertPool()
    pool.add(root)

    assert pool.contains(root)
    assert not pool.contains(intermediate)


def test_find_by_subject_missing_is_empty(root, leaf):
    pool = CertPool()
    pool.add(root)

    assert pool.find_by_subject(leaf.issuer) == []


def test_find_by_key_id(make_cert):
    with_id = make_cert("Keyed CA", key_id=b"\x01\x02\x03")
    reissued = make_cert("Keyed CA Reissued", key_id=b"\x01\x02\x03")
    without_id = make_cert("Plain CA")

    pool = CertPool()
    for cert in (with_id, without_id, reissued):
        pool.add(cert)

    assert pool.find_by_key_id(b"\x01\x02\x03") == [with_id, reissued]
    assert pool.find_by_key_id(b"\xff") == []
    assert list(pool.by_key_id) == [b"\x01\x02\x03"]


def test_add_none_raises():
    with pytest.raises(TypeError):
        CertPool().add(None)


def test_subjects(root, intermediate):
    pool = CertPool()
    pool.add(intermediate)
    pool.add(root)

    assert pool.subjects() == [intermediate.subject, root.subject]


def test_walk_visits_everything_in_order(root, intermediate, leaf):
    pool = CertPool()
    for cert in (root, intermediate, leaf):
        pool.add(cert)

    seen = []
    assert pool.walk(seen.append) is None
    assert seen == [root, intermediate, leaf]


def test_walk_stops_and_returns_the_signal(root, intermediate, leaf):
    pool = CertPool()
    for cert in (root, intermediate, leaf):
        pool.add(cert)

    seen = []

    def visit(cert):
        seen.append(cert)
        if cert == intermediate:
            return "stop"
        return None

    assert pool.walk(visit) == "stop"
    assert seen == [root, intermediate]


def test_walk_on_empty_pool():
    assert CertPool().walk(lambda cert: "never") is None
