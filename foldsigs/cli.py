"""Command-line harness.

    python -m foldsigs run --steps 5 --sigs-per-step 10 --proof-out proof.json
    python -m foldsigs verify --proof proof.json --sigs-per-step 10 --seed 0
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from foldsigs.driver import FlowConfig, full_flow, verifier_params_for
from foldsigs.errors import FoldSigsError, VerifyError
from foldsigs.protocol import Nova, load_proof, save_proof


def _run(args: argparse.Namespace) -> int:
    if args.config is not None:
        if not args.config.exists():
            print(f"Error: Config file not found: {args.config}", file=sys.stderr)
            return 1
        config = FlowConfig.from_json(str(args.config))
    else:
        config = FlowConfig(n_steps=args.steps, sigs_per_step=args.sigs_per_step, seed=args.seed)

    result = full_flow(config)
    print(f"Final state: {result.final_state}")
    if args.proof_out is not None:
        args.proof_out.parent.mkdir(parents=True, exist_ok=True)
        save_proof(result.proof, str(args.proof_out))
        print(f"Written proof to {args.proof_out}")
    return 0 if result.verified else 1


def _verify(args: argparse.Namespace) -> int:
    if not args.proof.exists():
        print(f"Error: Proof file not found: {args.proof}", file=sys.stderr)
        return 1
    print(f"Loading proof from {args.proof}...")
    proof = load_proof(str(args.proof))
    print("Rebuilding verifier parameters...")
    vp = verifier_params_for(args.sigs_per_step, args.seed)
    try:
        ok = Nova.verify(vp, proof)
    except VerifyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Proof {'accepted' if ok else 'rejected'}: {proof.i} steps, z_i = {proof.z_i}")
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foldsigs",
        description="Fold batches of EdDSA signature checks with a Nova-style IVC",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Generate signatures, fold them and verify the proof")
    run.add_argument('--steps', type=int, default=5, help='Number of folding steps')
    run.add_argument('--sigs-per-step', type=int, default=10, help='Signatures verified per step')
    run.add_argument('--seed', type=int, default=0, help='Seed for parameters and signing keys')
    run.add_argument('--config', type=Path, default=None, help='JSON flow config (overrides the flags above)')
    run.add_argument('--proof-out', type=Path, default=None, help='Write the IVC proof JSON here')
    run.set_defaults(func=_run)

    verify = sub.add_parser("verify", help="Verify an IVC proof JSON")
    verify.add_argument('--proof', type=Path, required=True, help='Path to proof JSON file')
    verify.add_argument('--sigs-per-step', type=int, required=True, help='Batch size the proof was made with')
    verify.add_argument('--seed', type=int, default=0, help='Seed the parameters were generated with')
    verify.set_defaults(func=_verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (FoldSigsError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
