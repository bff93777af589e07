"""Start depthimage_to_laserscan on a depth camera's image and camera info topics."""

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration, PathJoinSubstitution
from launch_ros.actions import Node
from launch_ros.substitutions import FindPackageShare


def generate_launch_description():
    depth_topic = LaunchConfiguration('depth_topic', default='/camera/depth/image_raw')
    info_topic = LaunchConfiguration('depth_camera_info_topic', default='/camera/depth/camera_info')
    scan_topic = LaunchConfiguration('scan_topic', default='/scan')
    params_file = LaunchConfiguration(
        'params_file',
        default=PathJoinSubstitution([
            FindPackageShare('depthimage_to_laserscan'), 'params', 'depthimage_to_laserscan.yaml',
        ]),
    )

    ld = LaunchDescription()

    ld.add_action(DeclareLaunchArgument('depth_topic', default_value=depth_topic))
    ld.add_action(DeclareLaunchArgument('depth_camera_info_topic', default_value=info_topic))
    ld.add_action(DeclareLaunchArgument('scan_topic', default_value=scan_topic))
    ld.add_action(DeclareLaunchArgument('params_file', default_value=params_file))

    ld.add_action(Node(
        package='depthimage_to_laserscan',
        executable='depthimage_to_laserscan_node',
        name='depthimage_to_laserscan',
        output='screen',
        parameters=[params_file],
        remappings=[
            ('depth', depth_topic),
            ('depth_camera_info', info_topic),
            ('scan', scan_topic),
        ],
    ))

    return ld
