"""
blogcraft

AI-assisted blog generation pipeline that:
- Researches topics using news and web search APIs
- Generates tone-controlled blog posts with Gemini
- Illustrates sections with attributed Unsplash photos
- Appends a numbered reference list built from the research
"""

__version__ = "0.1.0"
