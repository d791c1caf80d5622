"""Exception taxonomy.

Construction and allocation failures surface synchronously to the caller of
the failing operation. A logically invalid signature is not an error of the
constraint system itself: it leaves the step unsatisfiable, which the folding
engine reports as ConstraintUnsatisfied when it tries to prove that step.
"""


class FoldSigsError(Exception):
    """Base class for every error raised by this package."""


class ConstructionError(FoldSigsError, ValueError):
    """Circuit configuration is incompatible with the target field."""


class SynthesisError(FoldSigsError):
    """Constraint generation failed in the field/curve layer."""


class AllocationError(SynthesisError, ValueError):
    """A native value could not be allocated (out of range, off-curve, wrong shape)."""


class PreprocessError(FoldSigsError):
    """Folding parameters could not be generated."""


class ProveError(FoldSigsError):
    """A folding step could not be proven."""


class ConstraintUnsatisfied(ProveError):
    """The step witness does not satisfy the step relation.

    Attributes:
        step: Index of the step being proven
        constraint_index: Index of the first unsatisfied constraint
        label: Namespace path of that constraint ('' when unlabelled)
    """

    def __init__(self, step: int, constraint_index: int, label: str = ""):
        self.step = step
        self.constraint_index = constraint_index
        self.label = label
        where = f"constraint {constraint_index}"
        if label:
            where += f" ({label})"
        super().__init__(f"step {step} is unsatisfiable: {where} does not hold")


class VerifyError(FoldSigsError):
    """The proof is structurally malformed or does not match the parameters."""
