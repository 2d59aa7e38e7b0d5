"""campusbell: notification delivery backend and student-app notification client."""

__version__ = "0.1.0"
