"""
menulens: restaurant entity resolution from camera signage and free text.
"""
