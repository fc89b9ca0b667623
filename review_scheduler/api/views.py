from rest_framework import views, status
from rest_framework.response import Response
from django.utils import timezone
import structlog
import uuid
from ..domain.enums import SCORE_BAND_LABELS
from ..domain.logic import classify_score
from ..domain.records import AttemptReport
from ..services.reviews import get_scheduler
from ..utils.time import to_utc_iso
from .serializers import ReviewInSerializer, DueQuerySerializer

base_logger = structlog.get_logger()


class ReviewView(views.APIView):
    def post(self, request):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        submitted_at = data.get("submitted_at") or timezone.now()
        if "score" in data:
            report = AttemptReport(data["owner_id"], data["item_id"], data["score"], submitted_at)
        else:
            report = AttemptReport.from_counts(
                data["owner_id"], data["item_id"], data["correct"], data["total"], submitted_at
            )

        scheduler = get_scheduler()
        record = scheduler.record_attempt(report)
        band = classify_score(report.score, scheduler.config)

        logger.info(
            "review_api_response",
            owner_id=record.owner_id,
            item_id=record.item_id,
            score=report.score,
            revision=record.revision,
            interval_days=record.interval_days,
            next_review_utc=to_utc_iso(record.next_review_at),
            status=status.HTTP_201_CREATED,
        )

        return Response(
            {**record.as_dict(), "score": report.score, "score_label": SCORE_BAND_LABELS[band]},
            status=status.HTTP_201_CREATED,
        )


class DueItemsView(views.APIView):
    def get(self, request, owner_id):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = DueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        as_of = qs.validated_data.get("as_of") or timezone.now()
        limit = qs.validated_data["limit"]

        results = get_scheduler().get_due_items(owner_id, as_of, limit)

        logger.info(
            "due_items_api_response",
            owner_id=owner_id,
            as_of_utc=to_utc_iso(as_of),
            item_count=len(results),
        )

        return Response(
            {
                "owner_id": owner_id,
                "as_of_utc": to_utc_iso(as_of),
                "item_ids": results,
            }
        )


class ScheduleView(views.APIView):
    def get(self, request, owner_id, item_id):
        record = get_scheduler().get_schedule(owner_id, item_id)
        if record is None:
            return Response({"error": "No schedule yet"}, status=status.HTTP_404_NOT_FOUND)
        return Response(record.as_dict())


class ItemView(views.APIView):
    def put(self, request, owner_id, item_id):
        created = get_scheduler().register_item(owner_id, item_id)
        return Response(
            {"owner_id": owner_id, "item_id": item_id, "created": created},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request, owner_id, item_id):
        if not get_scheduler().remove_item(owner_id, item_id):
            return Response({"error": "Unknown item"}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
