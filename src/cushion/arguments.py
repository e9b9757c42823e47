# -*- coding: utf-8 -*-
#
# Copyright (C) 2015-2026 Dubalu LLC. All rights reserved.
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.
#
"""Argument resolution for multi-arity API methods.

Most database and document methods accept a variable number of optional
arguments ahead of their continuation, e.g. ``database.compact(callback)``
and ``database.compact('designname', callback)``. Each method declares
its optional parameters as an ordered list of ``Slot`` objects and hands
its ``*args``/``**kwargs`` to ``resolve_arguments``, which decides from
the runtime type of each value which slot it occupies.

Rules:

* The last callable positional argument is the continuation (or the
  ``callback`` keyword, when given).
* Every other positional argument fills the next slot, at or after the
  last filled one, whose kind accepts it. When adjacent slots share a
  kind, the leftmost fills first, so callers must respect declared order.
* ``None`` consumes the next slot and leaves its default in place.
* Keywords fill slots by name.
* Slots left unfilled take their default.

Example:
    >>> from collections.abc import Mapping
    >>> slots = (Slot('doc_id', str), Slot('params', Mapping))
    >>> bound = resolve_arguments(({'a': 1}, print), {}, *slots)
    >>> bound.doc_id, bound.params, bound.callback is print
    (None, {'a': 1}, True)
"""
from __future__ import annotations

import inspect
from typing import Any, Callable

from .collections import DictObject


__all__ = ['Slot', 'resolve_arguments', 'collect', 'complete']


def collect(*args):
    """Default continuation: hand the continuation arguments back as a tuple."""
    return args


async def complete(callback: Callable, *args) -> Any:
    """Invoke *callback* and await its result when it is awaitable."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Slot(object):
    """An optional, type-discriminated parameter of an API method.

    Attributes:
        name: Name the bound value is stored under (and keyword to set it).
        kind: Runtime type accepted by the slot: ``str``, ``Mapping``,
            ``int`` or ``bool``. ``int`` slots reject booleans.
        default: Value used when the call supplies nothing for the slot.
    """

    def __init__(self, name: str, kind: type, default: Any = None) -> None:
        self.name = name
        self.kind = kind
        self.default = default

    def __repr__(self):
        return f'<Slot {self.name}:{self.kind.__name__}>'

    def accepts(self, value: Any) -> bool:
        if self.kind is int and isinstance(value, bool):
            return False
        return isinstance(value, self.kind)


def resolve_arguments(args: tuple | list, kwargs: dict,
        *slots: Slot) -> DictObject:
    """Bind a call's positional and keyword arguments to *slots*.

    Args:
        args: Positional arguments of the call, in order.
        kwargs: Keyword arguments of the call.
        *slots: The method's optional parameters, in declared order.

    Returns:
        DictObject: One entry per slot name plus ``callback``, which is
            ``collect`` when the call supplied no continuation.

    Raises:
        TypeError: If a positional argument fits no remaining slot, a
            keyword names no slot, or a slot is given twice.
    """
    args = list(args)
    kwargs = dict(kwargs)

    callback = kwargs.pop('callback', None)
    if callback is None:
        for index in range(len(args) - 1, -1, -1):
            if callable(args[index]):
                callback = args.pop(index)
                break

    bound = DictObject((slot.name, slot.default) for slot in slots)
    given = set()
    position = 0
    for value in args:
        if value is None:
            if position >= len(slots):
                raise TypeError("too many positional arguments")
            position += 1
            continue
        for index in range(position, len(slots)):
            if slots[index].accepts(value):
                break
        else:
            raise TypeError(f"unexpected positional argument {value!r}")
        bound[slots[index].name] = value
        given.add(slots[index].name)
        position = index + 1

    for name, value in kwargs.items():
        if name not in bound:
            raise TypeError(f"unexpected keyword argument {name!r}")
        if name in given:
            raise TypeError(f"got multiple values for argument {name!r}")
        bound[name] = value

    bound['callback'] = collect if callback is None else callback
    return bound
