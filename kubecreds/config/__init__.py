"""
Kubeconfig documents for kubecreds.

Provides discovery, parsing and validation of kubeconfig files, and the
JSON-path evaluator used on auth-provider configuration.
"""

from kubecreds.config.loaders import YamlDocumentParser, load_document, parse_document, resolve_config_path
from kubecreds.config.query import JsonPathQuery, normalize_path_expression
from kubecreds.config.schemas import ConfigDocument, ContextReference, NamedCluster, NamedContext, NamedUser

__all__ = [
    # Schemas
    "ConfigDocument",
    "ContextReference",
    "NamedCluster",
    "NamedContext",
    "NamedUser",
    # Loading
    "YamlDocumentParser",
    "load_document",
    "parse_document",
    "resolve_config_path",
    # Queries
    "JsonPathQuery",
    "normalize_path_expression",
]
