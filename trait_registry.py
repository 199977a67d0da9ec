"""
Trait Registry

Open protocols (type classes) that third party types can conform to
without inheriting from anything. A trait maps a runtime value or type to
an implementation function.

Key Features:
- Per-type and per-value implementation tables
- Embedded implementations: a method on the class named after the trait's tag
- Derived implementations built from other traits
- Wildcard probes as a last resort
- Memoized resolution of derived/wildcard matches for types
"""

from __future__ import annotations
import logging
import weakref
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Impl = Any  # usually a callable, sometimes a marker such as True
Probe = Callable[[Any], Optional[Impl]]


class _Undefined:
    """Type of the UNDEFINED singleton (an absent value distinct from None)."""

    __slots__ = ()
    _instance: Optional["_Undefined"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()

_PRIMITIVE_TYPES = (type(None), bool, int, float, complex, str, bytes, _Undefined)


def isdef(value: Any) -> bool:
    return value is not None and value is not UNDEFINED


def is_primitive(value: Any) -> bool:
    return type(value) in _PRIMITIVE_TYPES


def typename(typ: Any) -> str:
    return getattr(typ, "__qualname__", None) or getattr(typ, "__name__", None) or repr(typ)


class HybridWeakMap:
    """Weak map that can also store primitive keys.

    Primitive keys live in an ordinary dict keyed by ``(type, value)`` so
    ``True`` and ``1`` stay distinct. Other keys are matched by identity and
    referenced weakly; objects that do not support weak references (lists,
    dicts, ...) are held strongly.
    """

    __slots__ = ("_primitives", "_objs")

    def __init__(self, iterable: Optional[Iterable[Tuple[Any, Any]]] = None):
        self._primitives: Dict[Tuple[type, Any], Any] = {}
        # id(key) -> (is_weak, weakref or strong key, value)
        self._objs: Dict[int, Tuple[bool, Any, Any]] = {}
        if iterable is not None:
            for k, v in iterable:
                self.set(k, v)

    def _obj_entry(self, key: Any) -> Optional[Tuple[bool, Any, Any]]:
        entry = self._objs.get(id(key))
        if entry is None:
            return None
        is_weak, ref, _ = entry
        referent = ref() if is_weak else ref
        return entry if referent is key else None

    def get(self, key: Any, default: Any = None) -> Any:
        if is_primitive(key):
            return self._primitives.get((type(key), key), default)
        entry = self._obj_entry(key)
        return default if entry is None else entry[2]

    def has(self, key: Any) -> bool:
        if is_primitive(key):
            return (type(key), key) in self._primitives
        return self._obj_entry(key) is not None

    def set(self, key: Any, value: Any) -> "HybridWeakMap":
        if is_primitive(key):
            self._primitives[(type(key), key)] = value
            return self
        ident = id(key)
        objs = self._objs
        try:
            entry = (True, weakref.ref(key, lambda _ref: objs.pop(ident, None)), value)
        except TypeError:
            entry = (False, key, value)
        objs[ident] = entry
        return self

    def delete(self, key: Any) -> bool:
        if is_primitive(key):
            return self._primitives.pop((type(key), key), UNDEFINED) is not UNDEFINED
        if self._obj_entry(key) is None:
            return False
        del self._objs[id(key)]
        return True

    def __contains__(self, key: Any) -> bool:
        return self.has(key)


class TraitNotImplemented(TypeError):
    """Raised by Trait.invoke() when no implementation matches a value.

    Attributes:
        trait: The trait that was not implemented
        value: The offending value
    """

    def __init__(self, trait: "Trait", value: Any):
        self.trait = trait
        self.value = value
        super().__init__(
            f"No implementation of trait {trait.name} for {value!r} "
            f"of type {typename(type(value))}."
        )


_used_tags: Dict[str, int] = {}


def _unique_tag(name: str) -> str:
    base = f"__trait_{name.lower()}"
    seen = _used_tags.get(base, 0)
    _used_tags[base] = seen + 1
    return f"{base}__" if seen == 0 else f"{base}_{seen + 1}__"


def _is_plain_record(value: Any) -> bool:
    """SimpleNamespace without an iteration protocol of its own."""
    return not callable(vars(value).get("__iter__"))


class Trait:
    """
    An open protocol that types can implement after the fact.

    Lookup precedence for a value:

    - implementations registered for the value itself (impl_static)
    - a method on the value named after ``sym``
    - implementations registered for the exact type (impl)
    - derived implementations, first for the type, then for the value
    - type wildcards (impl_wild), then value wildcards (impl_wild_static)

    Example:
        Size = Trait('Size')
        Size.impl(list, len)
        Size.invoke([1, 2, 3])   # 3

        class Box:
            def __trait_size__(self):
                return 1

    Args:
        name: Diagnostic name of the trait
        sym: Attribute name for embedded implementations; generated from
            the name when omitted
    """

    def __init__(self, name: str, sym: Optional[str] = None):
        self.name = name
        self.sym = sym or _unique_tag(name)
        self.table = HybridWeakMap()
        self.static_table = HybridWeakMap()
        self.derived: List[Tuple[List["Trait"], Callable]] = []
        self.wild: List[Probe] = []
        self.wild_static: List[Probe] = []

    def __repr__(self) -> str:
        return f"Trait({self.name!r})"

    def lookup_value(self, what: Any) -> Optional[Impl]:
        """
        Find the implementation of this trait for a specific value.

        Returns:
            The implementation (called as ``impl(what, *args)``) or None
        """
        typ = type(what)
        allow_type = not (typ is SimpleNamespace and not _is_plain_record(what))

        impl = self.static_table.get(what)
        if impl is None and allow_type:
            impl = self._lookup_property(what)
        if impl is None and allow_type:
            impl = self.table.get(typ)
        if impl is None and allow_type:
            impl = self._lookup_type_derive(typ)
        if impl is None:
            impl = self._lookup_value_derive(what)
        if impl is None and allow_type:
            impl = self._lookup_type_wild(typ)
        if impl is None:
            impl = self._lookup_value_wild(what)
        return impl

    def lookup_type(self, typ: type) -> Optional[Impl]:
        """Like lookup_value(), skipping every value-level step."""
        impl = self._lookup_method(typ)
        if impl is None:
            impl = self.table.get(typ)
        if impl is None:
            impl = self._lookup_type_derive(typ)
        if impl is None:
            impl = self._lookup_type_wild(typ)
        return impl

    def _lookup_property(self, what: Any) -> Optional[Callable]:
        if isinstance(what, type):
            return None
        prop = getattr(what, self.sym, None)
        if not callable(prop):
            return None
        return lambda _what, *args: prop(*args)

    def _lookup_method(self, typ: Any) -> Optional[Callable]:
        method = getattr(typ, self.sym, None) if isinstance(typ, type) else None
        if not callable(method):
            return None
        return lambda what, *args: method(what, *args)

    def _lookup_type_derive(self, typ: type) -> Optional[Callable]:
        for traits, fn in self.derived:
            impls = [trait.lookup_type(typ) for trait in traits]
            if all(impl is not None for impl in impls):
                derived = _bind_derived(fn, impls)
                logger.debug("Caching derived %s implementation for %s", self.name, typename(typ))
                self.impl(typ, derived)
                return derived
        return None

    def _lookup_value_derive(self, what: Any) -> Optional[Callable]:
        for traits, fn in self.derived:
            impls = [trait.lookup_value(what) for trait in traits]
            if all(impl is not None for impl in impls):
                return _bind_derived(fn, impls)
        return None

    def _lookup_type_wild(self, typ: type) -> Optional[Impl]:
        for probe in self.wild:
            impl = probe(typ)
            if impl is not None:
                logger.debug("Caching wildcard %s implementation for %s", self.name, typename(typ))
                self.impl(typ, impl)
                return impl
        return None

    def _lookup_value_wild(self, what: Any) -> Optional[Impl]:
        # Never cached, there are too many values.
        for probe in self.wild_static:
            impl = probe(what)
            if impl is not None:
                return impl
        return None

    def invoke(self, what: Any, *args: Any) -> Any:
        """
        Call the implementation of this trait for ``what``.

        Raises:
            TraitNotImplemented: When no implementation matches
        """
        impl = self.lookup_value(what)
        if impl is None:
            raise TraitNotImplemented(self, what)
        return impl(what, *args)

    def impl(self, typ: Any, impl: Impl) -> None:
        """Implement this trait for exactly ``typ`` (subclasses excluded)."""
        self.table.set(typ, impl)

    def impl_static(self, what: Any, impl: Impl) -> None:
        """Implement this trait for one specific value."""
        self.static_table.set(what, impl)

    def impl_derived(self, traits: Iterable["Trait"], fn: Callable) -> None:
        """Implement this trait for anything implementing all of ``traits``.

        ``fn`` is called as ``fn(impls, what, *args)`` where ``impls`` are the
        implementations of ``traits`` in order.
        """
        self.derived.append((list(traits), fn))

    def impl_wild(self, probe: Probe) -> None:
        """Last resort probe on types; must be fast. Results are cached."""
        self.wild.append(probe)

    def impl_wild_static(self, probe: Probe) -> None:
        """Last resort probe on values; must be fast. Results are not cached."""
        self.wild_static.append(probe)


def _bind_derived(fn: Callable, impls: List[Impl]) -> Callable:
    return lambda *args: fn(impls, *args)


def supports(typ: type, trait: Trait) -> bool:
    """Test whether ``trait`` has been implemented for type ``typ``."""
    return trait.lookup_type(typ) is not None


def value_supports(value: Any, trait: Trait) -> bool:
    """Test whether ``trait`` has been implemented for ``value``."""
    return trait.lookup_value(value) is not None
