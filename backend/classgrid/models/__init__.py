from classgrid.models.dataset import Dataset  # noqa: F401
