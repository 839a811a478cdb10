from rolloutscorer.publishing.publisher import Publisher, ScorecardPublisher, render_csv

__all__ = ["Publisher", "ScorecardPublisher", "render_csv"]
