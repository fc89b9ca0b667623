from rest_framework import serializers


class ReviewInSerializer(serializers.Serializer):
    owner_id = serializers.CharField(max_length=64)
    item_id = serializers.CharField(max_length=64)
    # Either a normalized score or the raw quiz result
    score = serializers.FloatField(required=False)
    correct = serializers.IntegerField(required=False, min_value=0)
    total = serializers.IntegerField(required=False, min_value=1)
    submitted_at = serializers.DateTimeField(required=False)  # ISO-8601, defaults to now

    def validate(self, attrs):
        has_score = "score" in attrs
        has_counts = "correct" in attrs or "total" in attrs
        if has_score == has_counts:
            raise serializers.ValidationError("Provide either score or correct and total.")
        if has_counts and not ("correct" in attrs and "total" in attrs):
            raise serializers.ValidationError("correct and total must be sent together.")
        return attrs


class DueQuerySerializer(serializers.Serializer):
    as_of = serializers.DateTimeField(required=False)  # ISO-8601, defaults to now
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=50)
