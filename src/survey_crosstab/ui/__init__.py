"""
Streamlit front end.
"""
