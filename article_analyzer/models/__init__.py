from .schemas import AnalysisResult, ArticleExtraction, PRDAnalysisResponse

__all__ = ["AnalysisResult", "ArticleExtraction", "PRDAnalysisResponse"]
