from linkdrip.adapters.metrics.open_page_rank import OpenPageRankAdapter
from linkdrip.adapters.metrics.static import StaticMetricsAdapter

__all__ = ["OpenPageRankAdapter", "StaticMetricsAdapter"]
