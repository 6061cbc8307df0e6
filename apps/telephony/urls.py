from django.urls import path
from apps.telephony import views

urlpatterns = [
    path('twilio/voice/', views.VoiceWebhookView.as_view(), name='twilio-voice'),
    path('twilio/voice/complete/', views.VoiceCompleteView.as_view(), name='twilio-voice-complete'),
    path('twilio/recording/', views.RecordingWebhookView.as_view(), name='twilio-recording'),
    path('twilio/status/', views.CallStatusCallbackView.as_view(), name='twilio-status'),
    path(
        'events/<uuid:event_id>/phone/purchase/',
        views.PurchaseNumberView.as_view(),
        name='event-phone-purchase',
    ),
    path(
        'events/<uuid:event_id>/phone/release/',
        views.ReleaseNumberView.as_view(),
        name='event-phone-release',
    ),
    path(
        'cron/purchase-upcoming-numbers/',
        views.PurchaseUpcomingNumbersView.as_view(),
        name='cron-purchase-upcoming-numbers',
    ),
    path(
        'cron/release-expired-numbers/',
        views.ReleaseExpiredNumbersView.as_view(),
        name='cron-release-expired-numbers',
    ),
]
