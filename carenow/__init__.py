"""CareNow home-care marketplace API"""
