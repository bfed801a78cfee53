"""
Safe pod removal for shard-replicated Elasticsearch clusters on Kubernetes.
"""

__version__ = "0.1.0"
