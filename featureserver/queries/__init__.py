"""Building the feature query.

* :mod:`~featureserver.queries.request` holds the parsed request parameters.
* :mod:`~featureserver.queries.stored` combines them with a stored view.
* :mod:`~featureserver.queries.sorting` builds the ordering.
* :mod:`~featureserver.queries.base` holds the final query for the repository.
"""
