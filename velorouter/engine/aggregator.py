"""RouteAggregator - Merges per-leg results into one path and one set of stats."""

from velorouter.model.point import Point
from velorouter.model.route_segment import RouteSegment
from velorouter.model.route_stats import RouteStats


class RouteAggregator:
    """Static methods combining ordered route segments.

    Segments must be passed in travel order (SegmentStore.ordered_segments()).
    """

    @staticmethod
    def merge_path(segments: list[RouteSegment]) -> list[Point]:
        """Concatenate segment polylines into one continuous path.

        The first coordinate of every segment after the first is dropped,
        since each leg starts where the previous one ended. Segments without
        a drawable polyline are skipped.

        Returns:
            Merged path, or [] if the list is empty or any segment is loading
            (a partial path is never shown).
        """
        if not segments or any(seg.is_loading for seg in segments):
            return []

        path: list[Point] = []
        for seg in segments:
            if not seg.has_path:
                continue
            path.extend(seg.coordinates if not path else seg.coordinates[1:])
        return path

    @staticmethod
    def path_offsets(segments: list[RouteSegment]) -> list[int | None]:
        """Index in the merged path where each segment's polyline begins.

        Consistent with merge_path: segment i owns merged-path edges
        [offset_i, offset_i + len(coordinates_i) - 1). Segments that
        contribute nothing get None.
        """
        offsets: list[int | None] = []
        cursor = 0
        for seg in segments:
            if not seg.has_path:
                offsets.append(None)
                continue
            offsets.append(cursor)
            cursor += len(seg.coordinates) - 1
        return offsets

    @staticmethod
    def sum_stats(segments: list[RouteSegment]) -> RouteStats:
        """Sum leg statistics over resolved segments.

        Loading segments and straight-line fallbacks carry no stats and
        contribute nothing.
        """
        total = RouteStats.zero()
        for seg in segments:
            if seg.is_loading or seg.stats is None or not seg.coordinates:
                continue
            total = total + seg.stats
        return total
