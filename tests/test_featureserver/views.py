from featureserver.views import CollectionDownloadView, FeatureCollectionView, FeatureListView

from .repository import FailingRepository, MemoryRepository

repository = MemoryRepository()


class RestaurantsView(FeatureCollectionView):
    """Query view with the in-memory collection."""

    repository = repository


class RestaurantsListView(FeatureListView):
    repository = repository


class RestaurantsDownloadView(CollectionDownloadView):
    repository = repository


class BrokenStreamView(FeatureCollectionView):
    """The second feature raises an exception while streaming."""

    repository = FailingRepository(fail_after=1)


class BrokenStartView(FeatureCollectionView):
    """The first feature raises an exception."""

    repository = FailingRepository(fail_after=0)
