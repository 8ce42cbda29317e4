"""
Persistence gateway for the marketplace tables.

Services address tables by name (``users``, ``jobs``, ``payments`` ...) and
get plain row dicts back, never model instances. Reads support:

- equality filters (a list value means IN, ``None`` means IS NULL, Django
  lookup suffixes such as ``suspension_end_date__lt`` pass through)
- case-insensitive substring search over named columns, including one-hop
  ``relation.column`` paths
- OR-combination of the search with extra equality predicates
- offset/limit pagination with an exact total count
- embedding of a related row through a named one-hop relation

Failures are raised as ``GatewayError`` carrying a ``code`` that callers
branch on. ``no_rows`` and ``unresolvable_embed`` are the two that services
recover from, ``duplicate_key`` is remapped on user creation, everything
else surfaces as a server error.
"""

import logging
from collections import namedtuple
from functools import reduce
import operator

from django.apps import apps
from django.core.exceptions import (
    FieldDoesNotExist,
    FieldError,
    ValidationError as DjangoValidationError,
)
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)

APPEND_ONLY_TABLES = frozenset({'audit_logs', 'user_status_history'})

# Columns never returned to callers.
HIDDEN_COLUMNS = {
    'users': frozenset({'password'}),
}

LOOKUP_SEPARATOR = '__'


class GatewayError(Exception):
    """
    Error raised by the persistence gateway.

    Attributes:
        code: Machine readable reason (no_rows, unresolvable_embed,
            duplicate_key, invalid_row, append_only, malformed_query,
            unexpected)
        table: Table the operation targeted
        details: Optional field level details for invalid rows
    """

    def __init__(self, message, code='unexpected', table=None, details=None):
        super().__init__(message)
        self.code = code
        self.table = table
        self.details = details or {}


class RowNotFound(GatewayError):
    """A single-row operation matched nothing."""

    def __init__(self, table, where):
        super().__init__(f"No rows in '{table}' matched {where}", code='no_rows', table=table)
        self.where = where


Page = namedtuple('Page', ['rows', 'count'])


class Embed:
    """
    Related rows to inline into each result row under ``name``.

    Args:
        name: Key in the result row, and the relation name on the model
            when the join can be expressed in one query
        table: Table the related rows live in
        local_key: Column on the primary row holding the join value
        remote_key: Column on the related table matched against it
        columns: Columns of the related row to return
        many: True when several related rows belong to one primary row
    """

    def __init__(self, name, table, local_key, remote_key='id', columns=('id',), many=False):
        self.name = name
        self.table = table
        self.local_key = local_key
        self.remote_key = remote_key
        self.columns = tuple(columns)
        self.many = many

    def __repr__(self):
        return f"Embed({self.name!r} -> {self.table}.{self.remote_key})"


class Search:
    """Case-insensitive substring match of ``term`` against any of ``columns``."""

    def __init__(self, term, columns):
        self.term = (term or '').strip()
        self.columns = tuple(columns)

    def __bool__(self):
        return bool(self.term and self.columns)

    def as_q(self):
        return reduce(
            operator.or_,
            (Q(**{f"{_path(column)}__icontains": self.term}) for column in self.columns),
        )


def _path(column):
    """Translate ``relation.column`` into an ORM lookup path."""
    return column.replace('.', LOOKUP_SEPARATOR)


def _models_by_table():
    return {model._meta.db_table: model for model in apps.get_app_config('core').get_models()}


def get_model(table):
    """
    Resolve a table name to its model.

    Raises:
        GatewayError: With code ``malformed_query`` for unknown tables
    """
    model = _models_by_table().get(table)
    if model is None:
        raise GatewayError(f"Unknown table '{table}'", code='malformed_query', table=table)
    return model


def table_columns(table):
    """Return the readable column names of ``table`` in declaration order."""
    model = get_model(table)
    hidden = HIDDEN_COLUMNS.get(table, frozenset())
    return [field.attname for field in model._meta.concrete_fields if field.attname not in hidden]


def _build_filter(where):
    """
    Turn an equality mapping into a Q object.

    A list, tuple or set value becomes ``__in``, ``None`` becomes
    ``__isnull=True``. Keys that already carry a lookup are used as given.
    """
    q = Q()
    for key, value in (where or {}).items():
        path = _path(key)
        has_lookup = LOOKUP_SEPARATOR in key
        if isinstance(value, (list, tuple, set, frozenset)) and not has_lookup:
            q &= Q(**{f"{path}__in": list(value)})
        elif value is None and not has_lookup:
            q &= Q(**{f"{path}__isnull": True})
        else:
            q &= Q(**{path: value})
    return q


def _resolve_embed(model, embed):
    """
    Check that ``embed`` maps onto a forward foreign key or a one-to-one
    relation of ``model`` pointing at ``embed.table``.

    Raises:
        GatewayError: With code ``unresolvable_embed`` otherwise
    """
    try:
        field = model._meta.get_field(embed.name)
    except FieldDoesNotExist:
        field = None

    resolvable = (
        field is not None
        and field.is_relation
        and not embed.many
        and (field.many_to_one or field.one_to_one)
        and field.related_model._meta.db_table == embed.table
    )
    if not resolvable:
        raise GatewayError(
            f"Could not embed '{embed.name}' into '{model._meta.db_table}': "
            f"no one-hop relationship to '{embed.table}'",
            code='unresolvable_embed',
            table=model._meta.db_table,
        )


def _fold_embeds(row, embeds):
    for embed in embeds:
        prefix = f"{embed.name}{LOOKUP_SEPARATOR}"
        related = {column: row.pop(f"{prefix}{column}") for column in embed.columns}
        row[embed.name] = related if any(value is not None for value in related.values()) else None
    return row


def _run(table, operation):
    """Execute ``operation`` and translate ORM errors into GatewayError."""
    try:
        return operation()
    except GatewayError:
        raise
    except IntegrityError as exc:
        message = str(exc)
        code = 'duplicate_key' if 'unique' in message.lower() or 'duplicate' in message.lower() else 'unexpected'
        raise GatewayError(message, code=code, table=table) from exc
    except (FieldError, FieldDoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise GatewayError(f"Malformed query on '{table}': {exc}", code='malformed_query', table=table) from exc
    except DatabaseError as exc:
        raise GatewayError(f"Database error on '{table}': {exc}", code='unexpected', table=table) from exc


def find(table, where=None, *, search=None, any_of=None, columns=None, order_by=None,
         offset=0, limit=None, embed=(), count=False):
    """
    Read rows from ``table``.

    Args:
        table: Table name
        where: Equality filters ANDed together
        search: Optional ``Search`` predicate
        any_of: Extra equality mappings ORed with the search predicate
        columns: Columns to return (defaults to every readable column)
        order_by: Sequence of columns, ``-`` prefix for descending
        offset: Rows to skip
        limit: Maximum rows to return (``None`` for all)
        embed: ``Embed`` relations to join in the same query
        count: When True, also compute the exact number of matching rows

    Returns:
        Page: ``rows`` as a list of dicts, ``count`` as int or None

    Raises:
        GatewayError: ``unresolvable_embed`` when an embed is not a one-hop
            relation, ``malformed_query`` for bad filters, ``unexpected``
            for database failures
    """
    model = get_model(table)
    columns = list(columns or table_columns(table))

    for relation in embed:
        _resolve_embed(model, relation)

    def operation():
        queryset = model.objects.filter(_build_filter(where))

        alternatives = []
        if search:
            alternatives.append(search.as_q())
        for predicate in any_of or ():
            alternatives.append(_build_filter(predicate))
        if alternatives:
            queryset = queryset.filter(reduce(operator.or_, alternatives))

        total = queryset.count() if count else None

        if order_by:
            queryset = queryset.order_by(*[_path(column) for column in order_by])

        selected = list(columns)
        for relation in embed:
            selected.extend(f"{relation.name}{LOOKUP_SEPARATOR}{column}" for column in relation.columns)

        queryset = queryset.values(*selected)
        if limit is not None:
            queryset = queryset[offset:offset + limit]
        elif offset:
            queryset = queryset[offset:]

        rows = [_fold_embeds(dict(row), embed) for row in queryset]
        return Page(rows, total)

    return _run(table, operation)


def get(table, where, *, columns=None, embed=()):
    """
    Read exactly one row.

    Raises:
        RowNotFound: If nothing matches ``where``
    """
    page = find(table, where, columns=columns, embed=embed, limit=1)
    if not page.rows:
        raise RowNotFound(table, where)
    return page.rows[0]


def count(table, where=None, *, search=None):
    """Return the exact number of rows matching ``where`` and ``search``."""
    model = get_model(table)

    def operation():
        queryset = model.objects.filter(_build_filter(where))
        if search:
            queryset = queryset.filter(search.as_q())
        return queryset.count()

    return _run(table, operation)


def _reload(model, table, pks):
    columns = table_columns(table)
    by_pk = {row[model._meta.pk.attname]: row for row in model.objects.filter(pk__in=pks).values(*columns)}
    return [by_pk[pk] for pk in pks if pk in by_pk]


def insert(table, values):
    """
    Insert one row (a dict) or several (a list of dicts).

    Every row is validated with the model's ``full_clean`` before writing;
    uniqueness is left to the database so concurrent inserts surface as
    ``duplicate_key``.

    Returns:
        The inserted row, or a list of rows when a list was given

    Raises:
        GatewayError: ``invalid_row`` with field details when validation
            fails, ``duplicate_key`` on unique violations
    """
    model = get_model(table)
    many = isinstance(values, (list, tuple))
    rows = list(values) if many else [values]

    def operation():
        instances = []
        with transaction.atomic():
            for row in rows:
                instance = model(**row)
                try:
                    instance.full_clean(validate_unique=False)
                except DjangoValidationError as exc:
                    raise GatewayError(
                        f"Invalid row for '{table}'",
                        code='invalid_row',
                        table=table,
                        details=exc.message_dict,
                    ) from exc
                instance.save(force_insert=True)
                instances.append(instance)
        return _reload(model, table, [instance.pk for instance in instances])

    inserted = _run(table, operation)
    return inserted if many else inserted[0]


def _update(table, where, patch):
    if table in APPEND_ONLY_TABLES:
        raise GatewayError(f"'{table}' is append-only", code='append_only', table=table)
    if not where:
        raise GatewayError(f"Refusing unfiltered update of '{table}'", code='malformed_query', table=table)

    model = get_model(table)
    patch = dict(patch)
    field_names = {field.name for field in model._meta.concrete_fields}
    if 'updated_at' in field_names and 'updated_at' not in patch:
        patch['updated_at'] = timezone.now()

    def operation():
        with transaction.atomic():
            # Lock the matched rows so a filter on the observed status acts
            # as a compare-and-swap on engines with row locking.
            pks = list(
                model.objects.select_for_update()
                .filter(_build_filter(where))
                .values_list('pk', flat=True)
            )
            if pks:
                model.objects.filter(pk__in=pks).update(**patch)
        return _reload(model, table, pks)

    return _run(table, operation)


def update(table, where, patch):
    """
    Apply ``patch`` to the row matching ``where`` in one UPDATE.

    Including the previously observed status in ``where`` makes the write
    a compare-and-swap: it matches nothing if another writer got there
    first. Patch values may be ORM expressions such as ``F('x') + 1``.

    Returns:
        dict: The updated row

    Raises:
        RowNotFound: If ``where`` matched nothing
        GatewayError: ``append_only`` for audit and history tables
    """
    rows = _update(table, where, patch)
    if not rows:
        raise RowNotFound(table, where)
    return rows[0]


def update_all(table, where, patch):
    """Apply ``patch`` to every row matching ``where`` and return them (possibly none)."""
    return _update(table, where, patch)


def upsert(table, row, on_conflict=('id',)):
    """
    Insert ``row`` or update the existing row sharing the ``on_conflict`` columns.

    Returns:
        dict: The stored row
    """
    model = get_model(table)
    lookup = {column: row[column] for column in on_conflict}
    defaults = {column: value for column, value in row.items() if column not in lookup}

    def operation():
        with transaction.atomic():
            instance, _created = model.objects.update_or_create(defaults=defaults, **lookup)
        return _reload(model, table, [instance.pk])[0]

    return _run(table, operation)


def delete(table, where):
    """
    Delete rows matching ``where``.

    Returns:
        int: Number of rows removed from ``table``

    Raises:
        GatewayError: ``append_only`` for audit and history tables,
            ``malformed_query`` for an empty filter
    """
    if table in APPEND_ONLY_TABLES:
        raise GatewayError(f"'{table}' is append-only", code='append_only', table=table)
    if not where:
        raise GatewayError(f"Refusing unfiltered delete of '{table}'", code='malformed_query', table=table)

    model = get_model(table)

    def operation():
        _total, per_model = model.objects.filter(_build_filter(where)).delete()
        return per_model.get(model._meta.label, 0)

    return _run(table, operation)


def attach(rows, embed):
    """
    Fetch the related rows for ``embed`` in one batched query and merge them
    into ``rows`` in place.

    Used when the relation cannot be joined in the primary query. Rows
    without a join value get ``None`` (or ``[]`` for ``many`` embeds).

    Returns:
        list: The same ``rows``
    """
    keys = {row.get(embed.local_key) for row in rows} - {None}
    columns = list(embed.columns)
    if embed.remote_key not in columns:
        columns.append(embed.remote_key)

    related = find(embed.table, {embed.remote_key: list(keys)}, columns=columns).rows if keys else []

    grouped = {}
    for item in related:
        grouped.setdefault(str(item[embed.remote_key]), []).append(
            {column: item[column] for column in embed.columns}
        )

    for row in rows:
        matches = grouped.get(str(row.get(embed.local_key)), [])
        if embed.many:
            row[embed.name] = matches
        else:
            row[embed.name] = matches[0] if matches else None

    logger.debug(f"Attached {len(related)} '{embed.table}' rows as '{embed.name}' to {len(rows)} rows")
    return rows
