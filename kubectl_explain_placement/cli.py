import argparse
import contextlib
import sys

from kubectl_explain_placement.config import load_config
from kubectl_explain_placement.engine import diagnose
from kubectl_explain_placement.errors import ObjectNotFound, PlacementError
from kubectl_explain_placement.kube_provider import KubernetesProvider
from kubectl_explain_placement.log import get_console, get_logger, setup_logging
from kubectl_explain_placement.output import OUTPUT_FORMATS, output_result
from kubectl_explain_placement.provider import ManifestProvider
from kubectl_explain_placement.verdict import TERMINAL_OUTCOMES

logger = get_logger(__name__)

# Exit codes
EXIT_OK = 0  # admitted, or already scheduled
EXIT_BLOCKED = 1  # blocked, or pod/node not found
EXIT_ERROR = 2  # the diagnosis could not be completed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubectl-explain_placement",
        description="Explain whether a Pod would be admitted onto a Node, and why not",
        epilog=(
            "Examples:\n"
            "  kubectl explain-placement -p web -n node-1 --namespace shop\n"
            "  kubectl explain-placement -p web -n node-1 --manifests dump/"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("-p", "--pod", required=True, help="Pod name")
    parser.add_argument("-n", "--node", required=True, help="Node name")
    parser.add_argument(
        "--namespace",
        default=None,
        help="Pod namespace (default: first match across all namespaces)",
    )

    parser.add_argument("--kubeconfig", default=None, help="Path to kubeconfig")
    parser.add_argument("--context", default=None, help="kubeconfig context")
    parser.add_argument(
        "--manifests",
        action="append",
        default=None,
        help="JSON/YAML manifest file or directory to read instead of a cluster "
        "(repeatable)",
    )

    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (text, json, yaml)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first failing predicate",
    )
    parser.add_argument("--verbose", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config).merged(
            kubeconfig=args.kubeconfig,
            context=args.context,
            output_format=args.format,
            run_all_filters=False if args.fail_fast else None,
            log_level="DEBUG" if args.verbose else None,
        )
    except PlacementError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(cfg.log_level)

    try:
        if args.manifests:
            provider = ManifestProvider.from_paths(args.manifests)
            status = contextlib.nullcontext()
        else:
            provider = KubernetesProvider.from_kubeconfig(cfg.kubeconfig, cfg.context)
            status = get_console().status("Troubleshooting pod placement...")

        with status:
            report = diagnose(
                provider,
                args.pod,
                args.node,
                args.namespace,
                run_all_filters=cfg.run_all_filters,
            )
    except ObjectNotFound as exc:
        print(exc.describe())
        return EXIT_BLOCKED
    except PlacementError as exc:
        logger.debug("Diagnosis aborted", exc_info=True)
        print(f"[Error] {exc}", file=sys.stderr)
        return EXIT_ERROR

    output_result(report, cfg.output_format)

    if report.admitted or report.outcome in TERMINAL_OUTCOMES:
        return EXIT_OK
    return EXIT_BLOCKED


if __name__ == "__main__":
    sys.exit(main())
