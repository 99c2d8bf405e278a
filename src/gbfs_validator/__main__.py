"""``python -m gbfs_validator``"""

from gbfs_validator.cli.app import app

app()
