"""
Metrics collector menggunakan Prometheus.
File ini mengumpulkan data lock operations seperti
outcome, latency, node errors, dan resource usage.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest
import time
import psutil


class MetricsCollector:
    """
    Class untuk mengumpulkan metrics lock coordinator.
    Menggunakan Prometheus format untuk monitoring.
    """
    
    def __init__(self):
        # Counter: jumlah operation per outcome (acquired, failed, ...)
        self.lock_operations = Counter(
            'lock_operations_total',
            'Total number of lock operations',
            ['operation', 'outcome']
        )
        
        # Counter: per-node failures yang di-tolerate
        self.node_errors = Counter(
            'lock_node_errors_total',
            'Total number of per-node errors',
            ['operation']
        )
        
        # Histogram: distribusi latency per operation
        self.operation_latency = Histogram(
            'lock_operation_latency_seconds',
            'Lock operation latency in seconds',
            ['operation']
        )
        
        # Gauge: jumlah node yang dipakai coordinator
        self.nodes = Gauge(
            'lock_nodes',
            'Number of connected lock nodes'
        )
        
        # System metrics
        self.cpu_usage = Gauge('cpu_usage_percent', 'CPU usage percentage')
        self.memory_usage = Gauge('memory_usage_percent', 'Memory usage percentage')
        
    def record_operation(self, operation: str, outcome: str, duration: float):
        """
        Record satu lock operation.
        
        Args:
            operation: lock, unlock, renew, status
            outcome: acquired, failed, released, ...
            duration: Duration in seconds
        """
        self.lock_operations.labels(operation=operation, outcome=outcome).inc()
        self.operation_latency.labels(operation=operation).observe(duration)
    
    def record_node_errors(self, operation: str, count: int):
        """Record jumlah node errors dalam satu round"""
        if count:
            self.node_errors.labels(operation=operation).inc(count)
    
    def set_nodes(self, count: int):
        """Update jumlah node"""
        self.nodes.set(count)
    
    def update_system_metrics(self):
        """Update CPU dan memory usage"""
        self.cpu_usage.set(psutil.cpu_percent())
        self.memory_usage.set(psutil.virtual_memory().percent)
    
    def get_metrics(self) -> bytes:
        """
        Export metrics dalam Prometheus format.
        Returns: Metrics data dalam bytes
        """
        self.update_system_metrics()
        return generate_latest()


# Context manager untuk measure operation time
class measure_time:
    """
    Context manager untuk mengukur execution time.
    
    Contoh penggunaan:
        with measure_time() as timer:
            await coordinator.lock("orders")
        print(f"Execution time: {timer.elapsed}s")
    """
    
    def __init__(self):
        self.start_time = None
        self.elapsed = None
    
    def __enter__(self):
        self.start_time = time.monotonic()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.monotonic() - self.start_time
        return False


# Singleton instance
metrics = MetricsCollector()
