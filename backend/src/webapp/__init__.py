"""Static web page and API relay for the document service"""
