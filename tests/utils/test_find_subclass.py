"""Tests for datamapper.utils.find_subclass, used to resolve association targets by name."""

import pytest

from datamapper.utils.find_subclass import find_subclass, iter_subclasses


class _Shape:
    pass


class _Polygon(_Shape):
    pass


class _Circle(_Shape):
    pass


class _Square(_Polygon):
    pass


def test_iter_subclasses_walks_the_whole_tree():
    assert set(iter_subclasses(_Shape)) >= {_Polygon, _Circle, _Square}


def test_find_subclass_returns_none_when_no_match():
    assert find_subclass(_Shape, "_Triangle") is None


def test_find_subclass_finds_nested_subclasses():
    assert find_subclass(_Shape, "_Circle") is _Circle
    assert find_subclass(_Shape, "_Square") is _Square


def test_find_subclass_raises_on_ambiguous_name():
    class _Ellipse(_Shape):
        pass

    class _OtherEllipse(_Shape):
        pass

    _OtherEllipse.__name__ = "_Ellipse"
    with pytest.raises(ValueError, match="More than one subclass"):
        find_subclass(_Shape, "_Ellipse")


def test_diamond_subclasses_are_yielded_once():
    class _Left(_Shape):
        pass

    class _Right(_Shape):
        pass

    class _Both(_Left, _Right):
        pass

    assert list(iter_subclasses(_Shape)).count(_Both) == 1
    assert find_subclass(_Shape, "_Both") is _Both
