"""
rostertree.config.defaults - Built-in configuration values
"""

DEFAULT_CONFIG = {
    "tree": {
        "copy_suffix": " (Copy)",
        "default_position": "front",
        "new_node_name": "New Group",
        "new_node_category": "Division",
        "id_prefix": "node",
    },
    "search": {
        "memoize": True,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
        "cors": True,
    },
}
