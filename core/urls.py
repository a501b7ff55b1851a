from django.urls import path
from . import views

urlpatterns = [
    path('user/<str:username>', views.user_profile, name='user_profile'),
    path('user/<str:username>/info', views.user_info, name='user_info'),
    path('user/<str:username>/solved', views.user_solved, name='user_solved'),
    path('compare', views.compare, name='compare'),
    path('teams', views.team_collection, name='team_collection'),
    path('teams/<str:team_id>', views.team_detail, name='team_detail'),
    path('teams/<str:team_id>/leaderboard', views.team_leaderboard, name='team_leaderboard'),
]
