from django.http import JsonResponse


def health(request):
    return JsonResponse({"ok": True, "msg": "API running"})


def error_404_view(request, exception):
    return JsonResponse({"success": False, "message": "Not found"}, status=404)


def error_500_view(request):
    return JsonResponse({"success": False, "message": "Internal server error"}, status=500)
