from __future__ import annotations

from typing import Iterable

from moneta.errors import InvalidArgumentError
from moneta.utils.numeric_tools import is_int_like

# Sentinel of `Currency.numeric` for currencies without an ISO numeric code
NO_NUMERIC_ID = -1

# Sentinel of `Currency.scale` for currencies without a nominal scale (amount's own scale governs)
AUTO_SCALED = -1

# Domain of currencies defined by the ISO 4217 standard
ISO_4217 = "ISO-4217"

NAMESPACE_SEPARATOR = "/"


def split_id(currency_id: str) -> tuple[str | None, str]:
    """Split `"crypto/BTC"` into `("crypto", "BTC")`; ids without a namespace give `(None, code)`."""
    namespace, separator, code = currency_id.rpartition(NAMESPACE_SEPARATOR)
    if not separator:
        return None, currency_id
    return namespace, code


def normalize_traits(traits: Iterable[str] | str | None, op: str) -> frozenset[str]:
    if traits is None:
        return frozenset()
    if isinstance(traits, str):
        traits = (traits,)
    result = frozenset(traits)
    # Raise: every trait must be a non-empty string
    for trait in result:
        if not isinstance(trait, str) or not trait.strip():
            raise InvalidArgumentError(
                f"Cannot call `{op}` because $traits contain an invalid trait ({trait!r})",
                op=op,
                argument="traits",
                value=trait,
            )
    return result


class Currency:
    """Immutable currency metadata.

    Attributes:
        id (str): Identifier, a short code optionally qualified by a namespace (`"PLN"`,
            `"crypto/BTC"`).
        numeric (int): ISO numeric code, or `NO_NUMERIC_ID`.
        scale (int): Nominal number of fractional digits, or `AUTO_SCALED`.
        domain (str | None): Classification axis, e.g. `"ISO-4217"` or `"CRYPTO"`. Defaults to the
            upper-cased namespace of $id.
        kind (str | None): Second classification axis, e.g. `"iso/fiat"`, `"virtual/token"`.
        weight (int): Priority among currencies sharing a code (lower wins). Ignored by equality.
        traits (frozenset[str]): Open-ended tags, e.g. `"stable"`, `"token/erc20"`.

    Two currencies differing only in $weight are equal. Arithmetic between money values only
    requires equal ids (see `same_id`).
    """

    __slots__ = ("_id", "_namespace", "_code", "_numeric", "_scale", "_domain", "_kind", "_weight", "_traits")

    def __init__(
        self,
        id: str,
        numeric: int = NO_NUMERIC_ID,
        scale: int = AUTO_SCALED,
        domain: str | None = None,
        kind: str | None = None,
        weight: int = 0,
        traits: Iterable[str] | str | None = None,
    ):
        """Initialize a Currency instance.

        Raises:
            InvalidArgumentError: If any parameter is invalid.
        """
        # Raise: id must be a non-empty string without surrounding separators
        if not isinstance(id, str) or not id.strip():
            raise InvalidArgumentError(f"$id must be a non-empty string, but provided value is: '{id}'", op="Currency", argument="id", value=id)
        currency_id = id.strip()
        namespace, code = split_id(currency_id)
        if not code or namespace == "":
            raise InvalidArgumentError(f"$id must look like 'CODE' or 'namespace/CODE', but provided value is: '{id}'", op="Currency", argument="id", value=id)

        # Raise: numeric must be a positive integer or NO_NUMERIC_ID
        if not is_int_like(numeric) or (numeric <= 0 and numeric != NO_NUMERIC_ID):
            raise InvalidArgumentError(f"$numeric must be a positive integer or NO_NUMERIC_ID, but provided value is: {numeric!r}", op="Currency", argument="numeric", value=numeric)

        # Raise: scale must be a non-negative integer or AUTO_SCALED
        if not is_int_like(scale) or (scale < 0 and scale != AUTO_SCALED):
            raise InvalidArgumentError(f"$scale must be a non-negative integer or AUTO_SCALED, but provided value is: {scale!r}", op="Currency", argument="scale", value=scale)

        # Raise: weight must be an integer
        if not is_int_like(weight):
            raise InvalidArgumentError(f"$weight must be an integer, but provided value is: {weight!r}", op="Currency", argument="weight", value=weight)

        if domain is None and namespace is not None:
            domain = namespace.upper()

        self._id = currency_id
        self._namespace = namespace
        self._code = code
        self._numeric = numeric
        self._scale = scale
        self._domain = domain
        self._kind = kind
        self._weight = weight
        self._traits = normalize_traits(traits, "Currency")

    # region Properties

    @property
    def id(self) -> str:
        return self._id

    @property
    def code(self) -> str:
        """Identifier without its namespace."""
        return self._code

    @property
    def namespace(self) -> str | None:
        return self._namespace

    @property
    def numeric(self) -> int:
        return self._numeric

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def domain(self) -> str | None:
        return self._domain

    @property
    def kind(self) -> str | None:
        return self._kind

    @property
    def weight(self) -> int:
        return self._weight

    @property
    def traits(self) -> frozenset[str]:
        return self._traits

    @property
    def has_numeric_id(self) -> bool:
        return self._numeric != NO_NUMERIC_ID

    @property
    def is_auto_scaled(self) -> bool:
        return self._scale == AUTO_SCALED

    # endregion

    # region Derived values

    def with_changes(self, **changes) -> Currency:
        """Return a copy of this currency with the given fields replaced.

        Example:
            heavier = PLN.with_changes(weight=10)
        """
        fields = {
            "id": self._id,
            "numeric": self._numeric,
            "scale": self._scale,
            "domain": self._domain,
            "kind": self._kind,
            "weight": self._weight,
            "traits": self._traits,
        }
        unknown = set(changes) - set(fields)
        # Raise: only known fields can be replaced
        if unknown:
            raise InvalidArgumentError(f"Cannot call `with_changes` because fields {sorted(unknown)} do not exist", op="with_changes", argument="changes", value=sorted(unknown))
        fields.update(changes)
        return Currency(**fields)

    def with_traits(self, traits: Iterable[str] | str | None) -> Currency:
        return self.with_changes(traits=normalize_traits(traits, "with_traits"))

    def with_weight(self, weight: int) -> Currency:
        return self.with_changes(weight=weight)

    # endregion

    # region Identity

    def same_id(self, other: Currency) -> bool:
        """True if $other is the same currency for arithmetic purposes (equal ids)."""
        return isinstance(other, Currency) and self._id == other._id

    def _identity(self) -> tuple:
        return self._id, self._numeric, self._scale, self._domain, self._kind, self._traits

    def __eq__(self, other) -> bool:
        """Check equality with another Currency, ignoring weight."""
        if not isinstance(other, Currency):
            return False
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}('{self._id}', numeric={self._numeric}, scale={self._scale}, "
            f"domain={self._domain!r}, kind={self._kind!r}, weight={self._weight}, traits={sorted(self._traits)})"
        )

    # endregion
