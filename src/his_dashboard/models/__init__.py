from his_dashboard.models.tables import Base, LineItem

__all__ = ["Base", "LineItem"]
