"""Mini README: Ledger entities for projects, payments and business costs.

Structure:
    * ProjectStatus / PaymentChannel / CostType - enums with tolerant parsing.
    * Valuation, Payment, SupplierCost - entries owned by a single project.
    * OperationalCost - business-wide expense not tied to any project.
    * Project - client job owning its valuations, payments and supplier costs.
    * DashboardState - root aggregate exchanged with persistence and export.
    * new_entity_id / next_valuation_name / sorted_by_date / find_by_id -
      identity helpers and read-only derived queries.

Every entity is a frozen dataclass and every owned collection is a tuple, so a
snapshot handed to the calculator or the export synchroniser can never change
underneath it. ``as_dict`` and ``from_dict`` speak the camelCase JSON layout
used by backups and imports; ``with_changes`` returns an edited copy after
validating and coercing the overrides, mirroring the duplication helpers of
the earlier in-memory ledger.
"""

from __future__ import annotations

import datetime as dt
import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

DEFAULT_VAT_RATE = 0.20

EntryT = TypeVar("EntryT")


def new_entity_id() -> str:
    """Return a process-wide unique, opaque identifier."""

    return uuid.uuid4().hex


class _CoercibleEnum(str, Enum):
    """Enum base accepting arbitrary casing and dashed spellings."""

    @classmethod
    def from_str(cls, value: Any):
        """Coerce arbitrary casing into a valid member."""

        if isinstance(value, cls):
            return value
        try:
            normalised = str(value).strip().lower().replace("-", "_").replace(" ", "_")
            return cls(normalised)
        except ValueError as error:
            raise ValueError(f"Unsupported {cls.__name__} value: {value}") from error


class ProjectStatus(_CoercibleEnum):
    """Lifecycle of a client project."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class PaymentChannel(_CoercibleEnum):
    """Channel a client payment arrived through."""

    ACCOUNT = "account"
    CASH = "cash"


class CostType(_CoercibleEnum):
    """Classification of operational costs."""

    FIXED = "fixed"
    VARIABLE = "variable"


def _parse_date(value: object) -> dt.date:
    """Parse ISO formatted strings or date objects safely."""

    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return dt.date.fromisoformat(text[:10])
        except ValueError as error:
            raise ValueError(f"Invalid date: {value!r}") from error
    raise ValueError("Dates must be provided as ISO strings or date/datetime instances.")


def _parse_datetime(value: object) -> dt.datetime:
    """Parse ISO timestamps, promoting plain dates to midnight UTC."""

    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError as error:
            raise ValueError(f"Invalid timestamp: {value!r}") from error
    else:
        raise ValueError("Timestamps must be ISO strings or datetime instances.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _parse_amount(value: object) -> float:
    """Coerce numeric input to a finite float."""

    if isinstance(value, bool):
        raise ValueError("Amounts must be numeric, not boolean.")
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as error:
        raise ValueError(f"Invalid amount: {value!r}") from error
    if not math.isfinite(amount):
        raise ValueError(f"Amounts must be finite: {value!r}")
    return amount


def _parse_non_negative_amount(value: object) -> float:
    amount = _parse_amount(value)
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value!r}")
    return amount


def _parse_optional_amount(value: object) -> Optional[float]:
    if value is None or value == "":
        return None
    return _parse_amount(value)


def _parse_text(value: object) -> str:
    if value is None:
        raise ValueError("Text value is required.")
    return str(value)


def _parse_optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "y"}:
            return True
        if lowered in {"false", "no", "0", "n", ""}:
            return False
    raise ValueError(f"Invalid boolean: {value!r}")


def _dump_date(value: dt.date) -> str:
    return value.isoformat()


def _dump_enum(value: Enum) -> str:
    return value.value


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class _FieldRule:
    """Describe how one attribute maps onto the JSON layout."""

    attribute: str
    wire_key: str
    coerce: Callable[[Any], Any]
    required: bool = True
    default: Any = None
    dump: Callable[[Any], Any] = _identity


def _load_fields(rules: Sequence[_FieldRule], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Parse ``data`` according to ``rules`` into constructor keyword arguments."""

    if not isinstance(data, Mapping):
        raise ValueError("Entity payloads must be JSON objects.")
    values: Dict[str, Any] = {}
    for rule in rules:
        if rule.wire_key in data and data[rule.wire_key] is not None:
            values[rule.attribute] = rule.coerce(data[rule.wire_key])
        elif rule.required:
            raise ValueError(f"Missing required field '{rule.wire_key}'.")
        else:
            values[rule.attribute] = rule.default
    return values


def _dump_fields(rules: Sequence[_FieldRule], entity: object) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for rule in rules:
        value = getattr(entity, rule.attribute)
        payload[rule.wire_key] = None if value is None else rule.dump(value)
    return payload


def _coerce_overrides(rules: Sequence[_FieldRule], overrides: Mapping[str, object]) -> Dict[str, object]:
    """Validate and coerce override payloads used when editing an entity."""

    editable = {rule.attribute: rule for rule in rules if rule.attribute != "id"}
    coerced: Dict[str, object] = {}
    for key, value in overrides.items():
        if key == "id":
            raise ValueError("Entity identifiers cannot be changed.")
        if key not in editable:
            raise ValueError(f"Override of field '{key}' is not supported.")
        if value is not None:
            coerced[key] = editable[key].coerce(value)
    return coerced


_VALUATION_FIELDS: Tuple[_FieldRule, ...] = (
    _FieldRule("id", "id", _parse_text),
    _FieldRule("name", "name", _parse_text, required=False, default=""),
    _FieldRule("date", "date", _parse_date, dump=_dump_date),
    _FieldRule("grand_total", "grandTotal", _parse_amount),
    _FieldRule("omissions", "omissions", _parse_non_negative_amount, required=False, default=0.0),
    _FieldRule("vat_rate", "vatRate", _parse_optional_amount, required=False),
    _FieldRule("notes", "notes", _parse_optional_text, required=False),
)

_PAYMENT_FIELDS: Tuple[_FieldRule, ...] = (
    _FieldRule("id", "id", _parse_text),
    _FieldRule("date", "date", _parse_date, dump=_dump_date),
    _FieldRule("amount", "amount", _parse_amount),
    _FieldRule("vat_rate", "vatRate", _parse_optional_amount, required=False),
    _FieldRule(
        "type",
        "type",
        PaymentChannel.from_str,
        required=False,
        default=PaymentChannel.ACCOUNT,
        dump=_dump_enum,
    ),
    _FieldRule("valuation_name", "valuationName", _parse_optional_text, required=False),
    _FieldRule("description", "description", _parse_optional_text, required=False),
)

_SUPPLIER_COST_FIELDS: Tuple[_FieldRule, ...] = (
    _FieldRule("id", "id", _parse_text),
    _FieldRule("date", "date", _parse_date, dump=_dump_date),
    _FieldRule("amount", "amount", _parse_amount),
    _FieldRule("supplier", "supplier", _parse_text),
    _FieldRule("description", "description", _parse_optional_text, required=False),
)

_OPERATIONAL_COST_FIELDS: Tuple[_FieldRule, ...] = (
    _FieldRule("id", "id", _parse_text),
    _FieldRule("date", "date", _parse_date, dump=_dump_date),
    _FieldRule("amount", "amount", _parse_amount),
    _FieldRule("category", "category", _parse_text),
    _FieldRule("cost_type", "costType", CostType.from_str, dump=_dump_enum),
    _FieldRule("description", "description", _parse_optional_text, required=False),
    _FieldRule("is_recurring", "isRecurring", _parse_bool, required=False, default=False),
)

_PROJECT_FIELDS: Tuple[_FieldRule, ...] = (
    _FieldRule("id", "id", _parse_text),
    _FieldRule("code", "code", _parse_text),
    _FieldRule("client_name", "clientName", _parse_text),
    _FieldRule("address", "address", _parse_optional_text, required=False),
    _FieldRule(
        "status",
        "status",
        ProjectStatus.from_str,
        required=False,
        default=ProjectStatus.ACTIVE,
        dump=_dump_enum,
    ),
    _FieldRule("has_cash_payment", "hasCashPayment", _parse_bool, required=False, default=False),
    _FieldRule("created_at", "createdAt", _parse_datetime, dump=lambda value: value.isoformat()),
    _FieldRule("notes", "notes", _parse_optional_text, required=False),
)


@dataclass(frozen=True, slots=True)
class Valuation:
    """Contractual value statement (V1, V2, ...) issued against a project."""

    id: str
    name: str
    date: dt.date
    grand_total: float
    omissions: float = 0.0
    vat_rate: Optional[float] = DEFAULT_VAT_RATE
    notes: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        date: object,
        grand_total: float,
        omissions: float = 0.0,
        vat_rate: Optional[float] = DEFAULT_VAT_RATE,
        name: str = "",
        notes: Optional[str] = None,
    ) -> "Valuation":
        """Build a new valuation with a fresh identifier.

        An empty ``name`` is filled in by the store with the next sequential
        label of the owning project.
        """

        return cls(
            id=new_entity_id(),
            name=name,
            date=_parse_date(date),
            grand_total=_parse_amount(grand_total),
            omissions=_parse_non_negative_amount(omissions),
            vat_rate=_parse_optional_amount(vat_rate),
            notes=notes,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Valuation":
        return cls(**_load_fields(_VALUATION_FIELDS, data))

    def as_dict(self) -> Dict[str, Any]:
        return _dump_fields(_VALUATION_FIELDS, self)

    def with_changes(self, overrides: Mapping[str, object]) -> "Valuation":
        return replace(self, **_coerce_overrides(_VALUATION_FIELDS, overrides))


@dataclass(frozen=True, slots=True)
class Payment:
    """Client payment recorded against a project, amount excluding VAT."""

    id: str
    date: dt.date
    amount: float
    vat_rate: Optional[float] = None
    type: PaymentChannel = PaymentChannel.ACCOUNT
    valuation_name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        date: object,
        amount: float,
        type: object = PaymentChannel.ACCOUNT,
        vat_rate: Optional[float] = None,
        valuation_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "Payment":
        """Build a new payment with a fresh identifier."""

        return cls(
            id=new_entity_id(),
            date=_parse_date(date),
            amount=_parse_amount(amount),
            vat_rate=_parse_optional_amount(vat_rate),
            type=PaymentChannel.from_str(type),
            valuation_name=valuation_name,
            description=description,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Payment":
        return cls(**_load_fields(_PAYMENT_FIELDS, data))

    def as_dict(self) -> Dict[str, Any]:
        return _dump_fields(_PAYMENT_FIELDS, self)

    def with_changes(self, overrides: Mapping[str, object]) -> "Payment":
        return replace(self, **_coerce_overrides(_PAYMENT_FIELDS, overrides))


@dataclass(frozen=True, slots=True)
class SupplierCost:
    """Flat supplier outflow recorded against a project."""

    id: str
    date: dt.date
    amount: float
    supplier: str
    description: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        date: object,
        amount: float,
        supplier: str,
        description: Optional[str] = None,
    ) -> "SupplierCost":
        """Build a new supplier cost with a fresh identifier."""

        return cls(
            id=new_entity_id(),
            date=_parse_date(date),
            amount=_parse_amount(amount),
            supplier=supplier,
            description=description,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SupplierCost":
        return cls(**_load_fields(_SUPPLIER_COST_FIELDS, data))

    def as_dict(self) -> Dict[str, Any]:
        return _dump_fields(_SUPPLIER_COST_FIELDS, self)

    def with_changes(self, overrides: Mapping[str, object]) -> "SupplierCost":
        return replace(self, **_coerce_overrides(_SUPPLIER_COST_FIELDS, overrides))


@dataclass(frozen=True, slots=True)
class OperationalCost:
    """Business-wide expense such as rent, salaries or insurance."""

    id: str
    date: dt.date
    amount: float
    category: str
    cost_type: CostType
    description: Optional[str] = None
    is_recurring: bool = False

    @classmethod
    def create(
        cls,
        *,
        date: object,
        amount: float,
        category: str,
        cost_type: object,
        description: Optional[str] = None,
        is_recurring: bool = False,
    ) -> "OperationalCost":
        """Build a new operational cost with a fresh identifier."""

        return cls(
            id=new_entity_id(),
            date=_parse_date(date),
            amount=_parse_amount(amount),
            category=category,
            cost_type=CostType.from_str(cost_type),
            description=description,
            is_recurring=bool(is_recurring),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OperationalCost":
        return cls(**_load_fields(_OPERATIONAL_COST_FIELDS, data))

    def as_dict(self) -> Dict[str, Any]:
        return _dump_fields(_OPERATIONAL_COST_FIELDS, self)

    def with_changes(self, overrides: Mapping[str, object]) -> "OperationalCost":
        return replace(self, **_coerce_overrides(_OPERATIONAL_COST_FIELDS, overrides))


@dataclass(frozen=True, slots=True)
class Project:
    """Client project owning its valuations, payments and supplier costs."""

    id: str
    code: str
    client_name: str
    created_at: dt.datetime
    address: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    has_cash_payment: bool = False
    valuations: Tuple[Valuation, ...] = field(default_factory=tuple)
    payments: Tuple[Payment, ...] = field(default_factory=tuple)
    supplier_costs: Tuple[SupplierCost, ...] = field(default_factory=tuple)
    notes: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        code: str,
        client_name: str,
        address: Optional[str] = None,
        status: object = ProjectStatus.ACTIVE,
        has_cash_payment: bool = False,
        notes: Optional[str] = None,
    ) -> "Project":
        """Build an empty project stamped with a fresh id and creation time."""

        return cls(
            id=new_entity_id(),
            code=code,
            client_name=client_name,
            created_at=dt.datetime.now(dt.timezone.utc),
            address=address,
            status=ProjectStatus.from_str(status),
            has_cash_payment=bool(has_cash_payment),
            notes=notes,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        values = _load_fields(_PROJECT_FIELDS, data)
        values["valuations"] = tuple(Valuation.from_dict(item) for item in _as_list(data, "valuations"))
        values["payments"] = tuple(Payment.from_dict(item) for item in _as_list(data, "payments"))
        values["supplier_costs"] = tuple(
            SupplierCost.from_dict(item) for item in _as_list(data, "supplierCosts")
        )
        return cls(**values)

    def as_dict(self) -> Dict[str, Any]:
        payload = _dump_fields(_PROJECT_FIELDS, self)
        payload["valuations"] = [valuation.as_dict() for valuation in self.valuations]
        payload["payments"] = [payment.as_dict() for payment in self.payments]
        payload["supplierCosts"] = [cost.as_dict() for cost in self.supplier_costs]
        return payload

    def with_changes(self, overrides: Mapping[str, object]) -> "Project":
        """Return an edited copy; owned collections change only through the store."""

        return replace(self, **_coerce_overrides(_PROJECT_FIELDS, overrides))


def _as_list(data: Mapping[str, Any], key: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Field '{key}' must be a list.")
    return list(value)


@dataclass(frozen=True, slots=True)
class DashboardState:
    """Root aggregate holding every project and operational cost."""

    projects: Tuple[Project, ...] = field(default_factory=tuple)
    operational_costs: Tuple[OperationalCost, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DashboardState":
        """Parse a backup payload, requiring both top-level collections."""

        if not isinstance(data, Mapping):
            raise ValueError("Snapshots must be JSON objects.")
        missing = [key for key in ("projects", "operationalCosts") if key not in data]
        if missing:
            raise ValueError(f"Snapshot is missing required collections: {', '.join(missing)}")
        return cls(
            projects=tuple(Project.from_dict(item) for item in _as_list(data, "projects")),
            operational_costs=tuple(
                OperationalCost.from_dict(item) for item in _as_list(data, "operationalCosts")
            ),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "projects": [project.as_dict() for project in self.projects],
            "operationalCosts": [cost.as_dict() for cost in self.operational_costs],
        }


def next_valuation_name(project: Project) -> str:
    """Label for the next valuation: count of existing valuations plus one.

    Names are never renumbered, so deleting an earlier valuation can produce
    duplicates; that matches how labels have always been issued.
    """

    return f"V{len(project.valuations) + 1}"


def find_by_id(entries: Iterable[EntryT], entity_id: str) -> Optional[EntryT]:
    """Linear scan for the entry carrying ``entity_id``."""

    for entry in entries:
        if getattr(entry, "id") == entity_id:
            return entry
    return None


def _entry_date(entry: object) -> dt.date:
    value = getattr(entry, "date", None)
    if value is None:
        value = getattr(entry, "created_at")
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def sorted_by_date(entries: Iterable[EntryT], *, descending: bool = False) -> List[EntryT]:
    """Return a new list ordered by date (projects use ``created_at``), ties by id."""

    return sorted(
        entries,
        key=lambda entry: (_entry_date(entry), getattr(entry, "id")),
        reverse=descending,
    )
