import argparse
import sys
from typing import List, Optional

from ..utils.config import FIT_FAILURE_POLICIES, LassoSettings, SimulationConfig
from ..utils.errors import ConfigurationError, FitFailureError


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments for a simulation study"""
    parser = argparse.ArgumentParser(
        description="Monte Carlo evaluation of gene-environment interaction tests",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Cohort and realizations
    parser.add_argument("--n-individuals", "-n", type=int, default=1000,
                       help="Number of individuals in the cohort")
    parser.add_argument("--n-snps", "-m", type=int, default=10,
                       help="Number of simulated SNPs")
    parser.add_argument("--n-realizations", "-N", type=int, default=100,
                       help="Number of outcome realizations")

    # Generative model
    parser.add_argument("--prevalence", type=float, default=0.5,
                       help="Probability that an individual is exposed")
    parser.add_argument("--prev-snps", type=float, default=0.6,
                       help="Fraction of SNPs with a marginal effect")
    parser.add_argument("--prev-interactions", type=float, default=0.5,
                       help="Fraction of active SNPs interacting with the exposure")
    parser.add_argument("--seed", type=int, default=None,
                       help="Random seed for reproducibility")

    # Decisions
    parser.add_argument("--alpha", type=float, default=0.05,
                       help="p-value threshold for the likelihood-ratio test")
    parser.add_argument("--on-fit-failure", default="raise", choices=list(FIT_FAILURE_POLICIES),
                       help="Abort the run on a failed fit, or skip that realization")
    parser.add_argument("--lr-max-iter", type=int, default=100,
                       help="IRLS iterations per likelihood-ratio fit")

    # Penalized regression
    parser.add_argument("--lasso-folds", type=int, default=10,
                       help="Cross-validation folds for the L1 fit")
    parser.add_argument("--lasso-cs", type=int, default=20,
                       help="Number of penalty strengths on the regularization path")
    parser.add_argument("--lasso-max-iter", type=int, default=1000,
                       help="Solver iterations per L1 fit")

    # Output
    parser.add_argument("--outputdir", "-o", default=None,
                       help="Directory for metrics table, counts and run summary")
    parser.add_argument("--quiet", "-q", action='store_true',
                       help="Only print the final metrics table")

    return parser.parse_args(argv)


def config_from_args(args) -> SimulationConfig:
    """Build a SimulationConfig from parsed arguments"""
    return SimulationConfig(
        n_individuals=args.n_individuals,
        n_snps=args.n_snps,
        n_realizations=args.n_realizations,
        prevalence=args.prevalence,
        prev_snps=args.prev_snps,
        prev_interactions=args.prev_interactions,
        alpha=args.alpha,
        seed=args.seed,
        on_fit_failure=args.on_fit_failure,
        lr_maxiter=args.lr_max_iter,
        lasso=LassoSettings(
            n_folds=args.lasso_folds,
            n_cs=args.lasso_cs,
            max_iter=args.lasso_max_iter,
        ),
    )


def main(argv: Optional[List[str]] = None) -> int:
    from ..pipelines.study import GxEStudyPipeline

    args = parse_args(argv)
    try:
        pipeline = GxEStudyPipeline(config_from_args(args), output_dir=args.outputdir,
                                    verbose=not args.quiet)
        results = pipeline.run()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except FitFailureError as exc:
        print(f"Fit failure: {exc}", file=sys.stderr)
        print("Re-run with --on-fit-failure skip to drop failing realizations", file=sys.stderr)
        return 1

    if args.quiet:
        print(results.formatted)
    return 0
