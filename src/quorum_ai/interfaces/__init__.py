from .consultation import IConsultant
from .evaluator import IEvaluator
from .reference import IGuidelineStore, IPrecedentStore

__all__ = ["IConsultant", "IEvaluator", "IGuidelineStore", "IPrecedentStore"]
