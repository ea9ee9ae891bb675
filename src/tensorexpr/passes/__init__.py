from .evaluate import EvaluationError, ReferenceEvaluator, evaluate
from .traversal import collect_reads, format_graph, post_order_ops

__all__ = [
    "EvaluationError",
    "ReferenceEvaluator",
    "evaluate",
    "collect_reads",
    "format_graph",
    "post_order_ops",
]
