"""
Custom exceptions for the planner engine.
Provides specific exception types for better error handling and recovery.
"""


class SimplePlanException(Exception):
    """Base exception for the planner"""
    pass


class GoalNotFoundException(SimplePlanException):
    """Raised when a goal is not found"""
    def __init__(self, goal_id: str):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class ActionNotFoundException(SimplePlanException):
    """Raised when an action is not found"""
    def __init__(self, action_id: str):
        self.action_id = action_id
        super().__init__(f"Action with ID {action_id} not found")


class TodoNotFoundException(SimplePlanException):
    """Raised when a todo is not found"""
    def __init__(self, todo_id: str):
        self.todo_id = todo_id
        super().__init__(f"Todo with ID {todo_id} not found")


class InvalidRecurrenceException(SimplePlanException):
    """Raised when a recurrence rule cannot be constructed"""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid recurrence: {reason}")


class PersistenceException(SimplePlanException):
    """Raised when store operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class ValidationException(SimplePlanException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
