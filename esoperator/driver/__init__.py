"""
Elasticsearch driver.

Import directly from submodules:
# from esoperator.driver.deletion import evaluate_and_delete, classify_pod
# from esoperator.driver.default import DefaultDriver, DriverOptions
"""
