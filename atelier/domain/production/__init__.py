"""Production stage and worker-assignment domain."""
