"""
CentralAuth Gateway Application

FastAPI server that delegates login, callback, user lookup and logout to a
CentralAuth client built fresh for every request.
"""
