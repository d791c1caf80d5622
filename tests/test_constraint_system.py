"""Tests for the R1CS engine: constraint system, FpVar and Boolean."""

import pytest

from foldsigs.errors import AllocationError, SynthesisError
from foldsigs.primitives.field import FR_MODULUS, FR_MODULUS_BITS, from_bits_le
from foldsigs.r1cs import ONE, AllocationMode, Boolean, ConstraintSystem, FpVar, enforce_le_bits


def _mul_circuit(x: int, y: int):
    cs = ConstraintSystem()
    a = FpVar.new_witness(cs, x)
    b = FpVar.new_witness(cs, y)
    out = FpVar.new_input(cs, x * y % FR_MODULUS)
    (a * b).enforce_equal(out)
    return cs


class TestConstraintSystem:

    def test_mul_circuit_satisfied(self):
        cs = _mul_circuit(3, 5)
        assert cs.num_constraints == 2
        assert cs.num_instance_variables == 2
        assert cs.num_witness_variables == 3
        assert cs.is_satisfied()

    def test_tampered_witness_reports_first_bad_row(self):
        cs = _mul_circuit(3, 5)
        # witness 2 is the product a*b
        cs.witness_assignment[2] = 16
        assert cs.which_is_unsatisfied() == 0
        assert not cs.is_satisfied()

    def test_namespace_labels(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 2)
        with cs.namespace("outer"):
            with cs.namespace("inner"):
                x.square()
            x.square()
        x.square()
        assert cs.labels == ["outer/inner", "outer", ""]

    def test_namespace_restored_after_exception(self):
        cs = ConstraintSystem()
        with pytest.raises(RuntimeError):
            with cs.namespace("boom"):
                raise RuntimeError()
        FpVar.new_witness(cs, 2).square()
        assert cs.labels == [""]

    def test_to_matrices_column_layout(self):
        cs = ConstraintSystem()
        x = FpVar.new_input(cs, 3)
        w = FpVar.new_witness(cs, 4)
        x * w
        A, B, C = cs.to_matrices()
        # columns: 0 = ONE, 1 = x, 2 = w, 3 = product
        assert A == [{1: 1}]
        assert B == [{2: 1}]
        assert C == [{3: 1}]

    def test_values_reduced_on_allocation(self):
        cs = ConstraintSystem()
        key = cs.new_witness_variable(FR_MODULUS + 2)
        assert key == ~0
        assert cs.assigned_value(key) == 2
        assert cs.assigned_value(ONE) == 1


class TestFpVar:

    def test_constants_are_free(self):
        a, b = FpVar.constant(3), FpVar.constant(4)
        c = a * b + a - 1
        assert c.is_constant() and c.value == 14

    def test_linear_operations_are_free(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 7)
        y = (x + x).mul_by_constant(3) - x + 5
        assert cs.num_constraints == 0
        assert y.value == 40
        assert cs.eval_lc(y.lc) == 40
        assert (x + x + FpVar.one()).value == 15

    def test_mul_by_zero_constant_is_constant(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 7)
        assert (x * 0).is_constant()

    def test_negative_and_subtraction_wrap(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 1)
        assert (-x).value == FR_MODULUS - 1
        assert (1 - x - x).value == FR_MODULUS - 1

    def test_allocation_rejects_out_of_range(self):
        cs = ConstraintSystem()
        with pytest.raises(AllocationError):
            FpVar.new_witness(cs, FR_MODULUS)
        with pytest.raises(AllocationError):
            FpVar.new_witness(cs, -1)
        with pytest.raises(AllocationError):
            FpVar.new_witness(cs, "5")
        with pytest.raises(AllocationError):
            FpVar.new_witness(cs, True)

    def test_constant_mode_allocates_nothing(self):
        cs = ConstraintSystem()
        v = FpVar.new_variable(cs, 9, AllocationMode.CONSTANT)
        assert v.is_constant()
        assert cs.num_witness_variables == 0

    def test_inverse(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 5)
        inv = x.inverse()
        assert inv.value * 5 % FR_MODULUS == 1
        assert cs.is_satisfied()

    def test_inverse_of_zero_is_unsatisfiable(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 0)
        x.inverse()
        assert cs.which_is_unsatisfied() == 0

    def test_inverse_of_constant_zero_raises(self):
        with pytest.raises(SynthesisError):
            FpVar.zero().inverse()

    def test_mul_by_inverse(self):
        cs = ConstraintSystem()
        num = FpVar.new_witness(cs, 10)
        den = FpVar.new_witness(cs, 4)
        q = num.mul_by_inverse(den)
        assert q.value * 4 % FR_MODULUS == 10
        assert cs.num_constraints == 1
        assert cs.is_satisfied()

    def test_mul_by_inverse_zero_denominator(self):
        cs = ConstraintSystem()
        num = FpVar.new_witness(cs, 10)
        den = FpVar.new_witness(cs, 0)
        assert num.mul_by_inverse(den).value == 0
        assert not cs.is_satisfied()

    @pytest.mark.parametrize("x,y,expected", [(5, 5, True), (5, 6, False), (0, 0, True)])
    def test_is_eq(self, x, y, expected):
        cs = ConstraintSystem()
        a = FpVar.new_witness(cs, x)
        b = FpVar.new_witness(cs, y)
        eq = a.is_eq(b)
        assert eq.value is expected
        assert cs.num_constraints == 2
        assert cs.is_satisfied()

    def test_is_eq_cannot_lie(self):
        cs = ConstraintSystem()
        a = FpVar.new_witness(cs, 5)
        eq = a.is_eq(6)
        assert not eq.value
        key = next(iter(eq.lc))
        cs.witness_assignment[~key] = 1
        assert not cs.is_satisfied()

    def test_enforce_equal_constants(self):
        FpVar.constant(3).enforce_equal(3)
        with pytest.raises(SynthesisError):
            FpVar.constant(3).enforce_equal(4)

    def test_to_bits_le(self):
        cs = ConstraintSystem()
        x = FpVar.new_witness(cs, 13)
        bits = x.to_bits_le()
        assert len(bits) == FR_MODULUS_BITS
        assert from_bits_le(b.value for b in bits) == 13
        assert cs.is_satisfied()

    def test_to_bits_le_of_largest_element(self):
        cs = ConstraintSystem()
        bits = FpVar.new_witness(cs, FR_MODULUS - 1).to_bits_le()
        assert from_bits_le(b.value for b in bits) == FR_MODULUS - 1
        assert cs.is_satisfied()

    def test_to_bits_le_constant(self):
        bits = FpVar.constant(6).to_bits_le()
        assert all(b.is_constant() for b in bits)
        assert [b.value for b in bits[:3]] == [False, True, True]

    def test_different_constraint_systems_rejected(self):
        a = FpVar.new_witness(ConstraintSystem(), 1)
        b = FpVar.new_witness(ConstraintSystem(), 2)
        with pytest.raises(SynthesisError):
            a + b


class TestBoolean:

    def test_booleanity(self):
        cs = ConstraintSystem()
        bit = Boolean.new_witness(cs, True)
        assert cs.num_constraints == 1
        assert cs.is_satisfied()
        cs.witness_assignment[~next(iter(bit.lc))] = 2
        assert not cs.is_satisfied()

    def test_logic(self):
        cs = ConstraintSystem()
        t = Boolean.new_witness(cs, True)
        f = Boolean.new_witness(cs, False)
        assert t.and_(f).value is False
        assert t.or_(f).value is True
        assert f.not_().value is True
        assert Boolean.kary_and([t, t, f]).value is False
        assert cs.is_satisfied()

    def test_constant_logic_is_free(self):
        assert Boolean.TRUE.and_(Boolean.FALSE) is Boolean.FALSE
        assert Boolean.TRUE.not_() is Boolean.FALSE
        cs = ConstraintSystem()
        b = Boolean.new_witness(cs, True)
        before = cs.num_constraints
        assert b.and_(Boolean.TRUE) is b
        assert cs.num_constraints == before

    def test_new_bits_le_width(self):
        cs = ConstraintSystem()
        bits = Boolean.new_bits_le(cs, 5, 4, AllocationMode.WITNESS)
        assert [b.value for b in bits] == [True, False, True, False]
        with pytest.raises(AllocationError):
            Boolean.new_bits_le(cs, 16, 4, AllocationMode.WITNESS)
        with pytest.raises(AllocationError):
            Boolean.new_bits_le(cs, -1, 4, AllocationMode.WITNESS)

    def test_enforce_nand(self):
        cs = ConstraintSystem()
        t = Boolean.new_witness(cs, True)
        f = Boolean.new_witness(cs, False)
        Boolean.enforce_nand([t, f])
        assert cs.is_satisfied()
        Boolean.enforce_nand([t, t])
        assert not cs.is_satisfied()

    def test_enforce_nand_constants(self):
        Boolean.enforce_nand([Boolean.FALSE, Boolean.TRUE])
        with pytest.raises(SynthesisError):
            Boolean.enforce_nand([Boolean.TRUE, Boolean.TRUE])

    @pytest.mark.parametrize("cond", [True, False])
    def test_select(self, cond):
        cs = ConstraintSystem()
        c = Boolean.new_witness(cs, cond)
        a = FpVar.new_witness(cs, 10)
        b = FpVar.new_witness(cs, 20)
        out = c.select(a, b)
        assert out.value == (10 if cond else 20)
        assert cs.num_constraints == 2
        assert cs.is_satisfied()

    def test_select_between_constants_is_linear(self):
        cs = ConstraintSystem()
        c = Boolean.new_witness(cs, True)
        out = c.select(FpVar.constant(7), FpVar.constant(3))
        assert out.value == 7
        assert cs.num_constraints == 1
        assert cs.eval_lc(out.lc) == 7


class TestEnforceLeBits:

    def _bits(self, value, width=FR_MODULUS_BITS):
        cs = ConstraintSystem()
        return cs, Boolean.new_bits_le(cs, value, width, AllocationMode.WITNESS)

    @pytest.mark.parametrize("value", [0, 1, 12345, FR_MODULUS - 2, FR_MODULUS - 1])
    def test_accepts_values_up_to_bound(self, value):
        cs, bits = self._bits(value)
        enforce_le_bits(bits, FR_MODULUS - 1)
        assert cs.is_satisfied()

    @pytest.mark.parametrize("value", [FR_MODULUS, FR_MODULUS + 1, (1 << FR_MODULUS_BITS) - 1])
    def test_rejects_values_above_bound(self, value):
        cs, bits = self._bits(value)
        enforce_le_bits(bits, FR_MODULUS - 1)
        assert not cs.is_satisfied()

    @pytest.mark.parametrize("value,ok", [(9, True), (10, True), (11, False), (15, False)])
    def test_small_bound(self, value, ok):
        cs, bits = self._bits(value, width=4)
        enforce_le_bits(bits, 10)
        assert cs.is_satisfied() is ok
