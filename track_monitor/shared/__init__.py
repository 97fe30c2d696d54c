"""
Общие модели и исключения для всех компонентов.
"""
