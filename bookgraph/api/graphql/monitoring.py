"""
Operation-level logging: names the running operation on every log line and
reports the batch loader metrics of its context when it ends.
"""
from strawberry.extensions import SchemaExtension

from bookgraph.common_logging import current_operation
from bookgraph.common_logging.setup import get_logger

logger = get_logger(__name__)


class OperationLoggingExtension(SchemaExtension):

    def on_execute(self):
        context = self.execution_context
        current_operation.set(context.operation_name or context.operation_type.value.lower())
        yield

    def on_operation(self):
        try:
            yield
        finally:
            loaders = getattr(self.execution_context.context, "loaders", None)
            metrics = loaders.get_metrics() if loaders is not None else {}
            for name, loader_metrics in metrics.items():
                logger.debug(
                    f"DataLoader {name}: {loader_metrics['batches']} batches, "
                    f"{loader_metrics['total_loads']} keys, "
                    f"avg batch {loader_metrics['avg_batch_size']:.1f}, "
                    f"avg load {loader_metrics['avg_load_time'] * 1000:.1f}ms"
                )
            current_operation.set(None)
