"""
Column helpers shared by all models
"""
import uuid


def generate_id() -> str:
    """Primary keys are opaque strings; fixtures may supply readable ones"""
    return str(uuid.uuid4())
