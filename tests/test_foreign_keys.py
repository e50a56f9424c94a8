from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from typing import Optional

from orm_reflect.core.datatypes import DBInteger, DBString
from orm_reflect.core.errors import (
    ConfigurationError,
    ReferencedClassNotATable,
    ReferenceToUndefinedColumn,
    ReferenceToUndefinedPrimaryKey,
    UnableToInterpolateReferencedColumn,
)
from orm_reflect.core.finder import find_properties
from orm_reflect.core.markers import column, foreign_key
from orm_reflect.core.metadata import build_class_metadata
from orm_reflect.core.schema_foreign_keys import (
    NO_FOREIGN_KEY,
    resolve_foreign_key,
    resolve_referenced_class,
)


def _pk() -> dict:
    return {"column": True, "pk": True}


@dataclass
class Table2:
    uid_2: Optional[DBInteger] = field(default=None, metadata=_pk())


@dataclass
class Table1:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    table_text: Optional[DBString] = field(default=None, metadata={"column": True})
    fkTable2: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": Table2})


@dataclass
class Address:
    addressUid: Optional[DBInteger] = field(default=None, metadata=_pk())
    intValue: Optional[DBInteger] = field(default=None, metadata={"column": True})


@dataclass
class Shipment:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    fkAddress: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": (Address, "intValue")}
    )
    fkAddressFolded: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": {"model": Address, "column": "INTVALUE"}}
    )


@dataclass
class BusinessLine:
    addressUid2: Optional[DBInteger] = field(default=None, metadata=_pk())
    bl_id: Optional[DBInteger] = field(default=None, metadata=_pk())


@dataclass
class Transfer:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    fromBlId: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": BusinessLine}
    )


@dataclass
class AmbiguousTransfer:
    from_: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": BusinessLine}
    )


@dataclass
class Customer:
    customerUid: Optional[DBInteger] = field(default=None, metadata=_pk())
    fkPreviousHistory: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": "Customer"}
    )


@dataclass
class Husband:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    wife_uid: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": "Wife"})


@dataclass
class Wife:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    husband_uid: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": Husband}
    )


class NotMapped:
    pass


@dataclass
class OptedOut:
    __table__ = None
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())


@dataclass
class Keyless:
    code: Optional[DBString] = field(default=None, metadata={"column": True})
    CODE: Optional[DBString] = field(default=None, metadata={"column": True})


@dataclass
class BrokenTarget:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    dangling: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": NotMapped})
    unsupported: int = field(default=0, metadata={"column": True})


@dataclass
class Invoice:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    broken: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": lambda: BrokenTarget}
    )
    _customer: Optional[DBInteger] = None

    @property
    @column("fk_customer")
    @foreign_key(Customer)
    def customer(self) -> Optional[DBInteger]:
        return self._customer

    @customer.setter
    def customer(self, value: Optional[DBInteger]) -> None:
        self._customer = value


@dataclass
class MalformedTarget:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    junk: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": 42})
    odd: Optional[DBString] = field(
        default=None, metadata={"column": True, "adapt": "NotAnAdaptor"}
    )


@dataclass
class PointsAtMalformed:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    ref: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": MalformedTarget}
    )


_REGISTRY: dict = {}


@dataclass
class RaisingTarget:
    uid: Optional[DBInteger] = field(default=None, metadata=_pk())
    ref: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": lambda: _REGISTRY["Missing"]}
    )


@dataclass
class SharedSuffixLine:
    id: Optional[DBInteger] = field(default=None, metadata=_pk())
    bl_id: Optional[DBInteger] = field(default=None, metadata=_pk())


@dataclass
class SharedSuffixTransfer:
    fromBlId: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": SharedSuffixLine}
    )


def _fk(model: type, name: str):
    accessor = {a.name: a for a in find_properties(model)}[name]
    return resolve_foreign_key(accessor)


def _accessor_on(model: type, name: str):
    return {a.name: a for a in find_properties(model)}[name]


class ForeignKeyResolutionTests(unittest.TestCase):
    def test_primary_key_of_referenced_table(self) -> None:
        facts = _fk(Table1, "fkTable2")

        self.assertTrue(facts.is_foreign_key)
        self.assertIs(facts.referenced_class, Table2)
        self.assertEqual(facts.referenced_table_name, "table2")
        self.assertEqual(facts.referenced_column_name, "uid_2")
        self.assertEqual(facts.referenced_member_name, "uid_2")

    def test_member_without_marker_is_not_a_foreign_key(self) -> None:
        facts = _fk(Table1, "uid")

        self.assertIs(facts, NO_FOREIGN_KEY)
        self.assertFalse(facts.is_foreign_key)

    def test_explicit_column(self) -> None:
        self.assertEqual(_fk(Shipment, "fkAddress").referenced_column_name, "intValue")

    def test_explicit_column_matches_case_insensitively(self) -> None:
        self.assertEqual(_fk(Shipment, "fkAddressFolded").referenced_column_name, "intValue")

    def test_multi_column_primary_key_is_interpolated_from_member_name(self) -> None:
        facts = _fk(Transfer, "fromBlId")

        self.assertEqual(facts.referenced_table_name, "businessline")
        self.assertEqual(facts.referenced_column_name, "bl_id")

    def test_interpolation_without_matching_suffix_fails(self) -> None:
        with self.assertRaises(UnableToInterpolateReferencedColumn) as ctx:
            _fk(AmbiguousTransfer, "from_")
        self.assertEqual(ctx.exception.referenced_class, "BusinessLine")
        self.assertEqual(ctx.exception.member, "from_")

    def test_self_reference_terminates(self) -> None:
        facts = _fk(Customer, "fkPreviousHistory")

        self.assertIs(facts.referenced_class, Customer)
        self.assertEqual(facts.referenced_table_name, "customer")
        self.assertEqual(facts.referenced_column_name, "customerUid")

    def test_mutual_references_terminate(self) -> None:
        self.assertEqual(_fk(Husband, "wife_uid").referenced_table_name, "wife")
        self.assertEqual(_fk(Wife, "husband_uid").referenced_table_name, "husband")

    def test_referenced_class_declarations_are_not_validated(self) -> None:
        facts = _fk(Invoice, "broken")

        self.assertIs(facts.referenced_class, BrokenTarget)
        self.assertEqual(facts.referenced_column_name, "uid")

    def test_referenced_class_reference_and_adaptor_entries_are_not_parsed(self) -> None:
        facts = _fk(PointsAtMalformed, "ref")

        self.assertIs(facts.referenced_class, MalformedTarget)
        self.assertEqual(facts.referenced_column_name, "uid")

    def test_interpolation_with_several_matching_keys_fails(self) -> None:
        with self.assertRaises(UnableToInterpolateReferencedColumn) as ctx:
            _fk(SharedSuffixTransfer, "fromBlId")
        self.assertEqual(ctx.exception.referenced_class, "SharedSuffixLine")

    def test_raising_target_callable_is_reported_with_context(self) -> None:
        with self.assertRaises(ReferencedClassNotATable) as ctx:
            _fk(RaisingTarget, "ref")
        self.assertIsInstance(ctx.exception, ConfigurationError)
        self.assertEqual(ctx.exception.owner, "RaisingTarget")
        self.assertEqual(ctx.exception.member, "ref")
        self.assertIsInstance(ctx.exception.__cause__, KeyError)

    def test_accessor_pair_foreign_key(self) -> None:
        facts = _fk(Invoice, "customer")

        self.assertEqual(facts.referenced_table_name, "customer")
        self.assertEqual(facts.referenced_column_name, "customerUid")

    def test_referenced_class_must_be_a_table(self) -> None:
        accessor = _accessor_on(BrokenTarget, "dangling")

        with self.assertRaises(ReferencedClassNotATable) as ctx:
            resolve_foreign_key(accessor)
        self.assertEqual(ctx.exception.referenced_class, "NotMapped")
        self.assertEqual(ctx.exception.owner, "BrokenTarget")

    def test_opted_out_and_unknown_targets_are_not_tables(self) -> None:
        @dataclass
        class PointsAtOptedOut:
            ref: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": OptedOut})

        @dataclass
        class PointsAtNothing:
            ref: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": "Missing"})

        with self.assertRaises(ReferencedClassNotATable):
            _fk(PointsAtOptedOut, "ref")
        with self.assertRaises(ReferencedClassNotATable):
            _fk(PointsAtNothing, "ref")

    def test_undefined_explicit_column(self) -> None:
        @dataclass
        class PointsAtMissingColumn:
            ref: Optional[DBInteger] = field(
                default=None, metadata={"column": True, "fk": (Address, "nope")}
            )

        with self.assertRaises(ReferenceToUndefinedColumn) as ctx:
            _fk(PointsAtMissingColumn, "ref")
        self.assertEqual(ctx.exception.referenced_column, "nope")

    def test_columns_differing_only_by_case_are_ambiguous(self) -> None:
        @dataclass
        class PointsAtCode:
            ref: Optional[DBString] = field(
                default=None, metadata={"column": True, "fk": (Keyless, "Code")}
            )

        with self.assertRaises(ReferenceToUndefinedColumn):
            _fk(PointsAtCode, "ref")

    def test_referenced_class_without_primary_key(self) -> None:
        @dataclass
        class PointsAtKeyless:
            ref: Optional[DBString] = field(default=None, metadata={"column": True, "fk": Keyless})

        with self.assertRaises(ReferenceToUndefinedPrimaryKey):
            _fk(PointsAtKeyless, "ref")


class ReferencedClassTests(unittest.TestCase):
    def test_targets_resolve_lazily(self) -> None:
        self.assertIs(resolve_referenced_class(Table2, Table1), Table2)
        self.assertIs(resolve_referenced_class("Table2", Table1), Table2)
        self.assertIs(resolve_referenced_class("Customer", Customer), Customer)
        self.assertIs(resolve_referenced_class(lambda: Table2, Table1), Table2)

    def test_unknown_targets_resolve_to_none(self) -> None:
        self.assertIsNone(resolve_referenced_class("Missing", Table1))
        self.assertIsNone(resolve_referenced_class("unittest", Table1))
        self.assertIsNone(resolve_referenced_class(42, Table1))


class ForeignKeyMetadataTests(unittest.TestCase):
    def test_table1_metadata(self) -> None:
        metadata = build_class_metadata(Table1)

        self.assertEqual(metadata.primary_key_descriptors[0].column_name, "uid")
        descriptor = metadata.descriptor_by_member_name("fkTable2")
        self.assertEqual(descriptor.referenced_table_name, "table2")
        self.assertEqual(descriptor.referenced_column_name, "uid_2")

    def test_cyclic_classes_build(self) -> None:
        husband = build_class_metadata(Husband)
        wife = build_class_metadata(Wife)

        self.assertTrue(husband.descriptor_by_member_name("wife_uid").is_foreign_key_to(Wife))
        self.assertTrue(wife.descriptor_by_member_name("husband_uid").is_foreign_key_to(Husband))

    def test_self_reference_is_recursive(self) -> None:
        metadata = build_class_metadata(Customer)

        self.assertEqual(
            [d.member_name for d in metadata.recursive_foreign_key_descriptors],
            ["fkPreviousHistory"],
        )

    def test_failed_interpolation_aborts_the_build(self) -> None:
        with self.assertRaises(UnableToInterpolateReferencedColumn):
            build_class_metadata(AmbiguousTransfer)

    def test_malformed_entries_on_a_referenced_class_do_not_abort_the_build(self) -> None:
        metadata = build_class_metadata(PointsAtMalformed)

        self.assertEqual(
            metadata.descriptor_by_member_name("ref").referenced_column_name, "uid"
        )
        with self.assertRaises(TypeError):
            build_class_metadata(MalformedTarget)

    def test_raising_target_callable_aborts_the_build_with_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_class_metadata(RaisingTarget)


if __name__ == "__main__":
    unittest.main()
