"""
Analytics for DFAC Pulse.

Derives everything the admin dashboard shows from fetched survey responses:
- Metrics Aggregator: windows, averages, trends, day-of-week rollups
- Theme Extractor: phrase/keyword clustering of free-text comments
- Theme Summary Agent: optional one-sentence summaries via Gemini
"""
